from portpeek.exceptions import InvalidPortError

MIN_PORT = 1
MAX_PORT = 65535


def parse_port(value: str) -> int:
    """
    Parse a command line argument into a port number.

    Only plain decimal digits are accepted (a leading ``+`` or ``-`` sign,
    whitespace inside the number, or ``0x`` prefixes are rejected).
    """
    text = value.strip()
    if not text:
        raise InvalidPortError(value, "empty value")
    if not text.isdigit() or not text.isascii():
        raise InvalidPortError(value, "not a number")

    # long digit strings would trip the int conversion limit
    if len(text.lstrip("0")) > len(str(MAX_PORT)):
        raise InvalidPortError(value, f"must be between {MIN_PORT} and {MAX_PORT}")

    port = int(text)
    if not (MIN_PORT <= port <= MAX_PORT):
        raise InvalidPortError(value, f"must be between {MIN_PORT} and {MAX_PORT}")
    return port
