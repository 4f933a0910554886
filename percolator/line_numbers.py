from re import compile as re_compile

# Both the bundled compiler and the native `coffee` binary report positions
# as "... on line 7"
LINE_NUMBER = re_compile(r"line ([0-9]+)")


def extract_line_number(message: str | None) -> int:
    """
    Best-effort lookup of the line a compiler error points at. Returns 0 when
    the message doesn't contain one; callers should read 0 as "unknown".

    """
    if not message:
        return 0

    match = LINE_NUMBER.search(message)
    if match is None:
        return 0
    return int(match.group(1))
