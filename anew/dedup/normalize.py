"""Line normalization applied before every comparison."""

# Unicode White_Space characters. The \x1c-\x1f separators are data.
WHITESPACE = (
    "\t\n\v\f\r \x85\xa0"
    "\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


def chomp(line: str) -> str:
    """
    Drop the line terminator.

    Examples:
        "foo\\n"   -> "foo"
        "foo\\r\\n" -> "foo"
        "foo"     -> "foo"   (last line without newline)
    """
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def normalize_line(line: str, trim: bool = False) -> str:
    """
    Normalize a raw line for comparison and storage.

    - Terminator removed
    - Leading/trailing whitespace stripped when `trim` is set

    Returns:
        Normalized line; empty string means the line is blank and must be skipped
    """
    line = chomp(line)
    if trim:
        line = line.strip(WHITESPACE)
    return line
