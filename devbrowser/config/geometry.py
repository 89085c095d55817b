"""
Parsing of the window placement string.

The user-facing form is "x,y:w,h", for example "1930,0:800,600" to put the
browser on a second monitor.
"""

from devbrowser.errors import ConfigValidationError


def parse_position_and_size(config: str) -> tuple[int, int, int, int]:
    """Parse "x,y:w,h" into (x, y, width, height).

    Raises:
        ConfigValidationError: With a message naming the malformed part.
    """
    halves = (config or "").split(":")
    if len(halves) != 2:
        raise ConfigValidationError("browse config must be in the format: 1930,0:800,600")

    position = halves[0].split(",")
    if len(position) != 2:
        raise ConfigValidationError("position must be with commas e.g.: 1930,0:800,600")

    size = halves[1].split(",")
    if len(size) != 2:
        raise ConfigValidationError("width and height must be with commas e.g.: 1930,0:800,600")

    try:
        x, y = int(position[0].strip()), int(position[1].strip())
    except ValueError:
        raise ConfigValidationError("position must be integer numbers e.g.: 1930,0:800,600") from None

    try:
        width = int(size[0].strip())
    except ValueError:
        raise ConfigValidationError("width must be an integer number") from None

    try:
        height = int(size[1].strip())
    except ValueError:
        raise ConfigValidationError("height must be an integer number") from None

    return x, y, width, height


def format_position_and_size(x: int, y: int, width: int, height: int) -> str:
    return f"{x},{y}:{width},{height}"
