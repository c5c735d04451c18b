def column_letter(index: int) -> str:
    """
    Convert a 1-based column index to a spreadsheet column name.

    Bijective base-26: there is no zero digit, so Z is followed by AA.

    Examples:
        >>> column_letter(1)
        'A'
        >>> column_letter(27)
        'AA'
        >>> column_letter(703)
        'AAA'
    """
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = []
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


def cell_ref(column: int, row: int, absolute: bool = False) -> str:
    """A1-style reference for 1-based column and row, optionally $-anchored."""
    if absolute:
        return f"${column_letter(column)}${row}"
    return f"{column_letter(column)}{row}"
