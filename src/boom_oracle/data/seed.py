"""Starting sequence for owners with no stored ticks."""

DEFAULT_SEED_TICKS: tuple[int, ...] = (
    13, 56, 4, 21, 8, 13, 83, 3, 21, 15, 39, 1, 3, 5, 6, 19, 11, 114, 11, 3,
    19, 10, 47, 4, 7, 8, 24, 9, 14, 21, 43, 37, 11, 31, 20, 18, 3, 18, 0, 7,
    17, 2, 0, 3, 17, 13, 23, 8, 16, 25, 76, 11, 66, 51, 1, 32, 1, 7, 5, 17,
    41, 26, 28, 6, 10, 1, 49, 9, 21, 1, 71, 3, 21, 22, 7, 10, 22, 20, 5, 1,
    47, 26, 10, 21, 23, 1, 52, 8, 30, 24, 4, 19, 49, 8, 5, 8, 4, 3, 29, 17,
)
