from dataclasses import dataclass


@dataclass(frozen=True)
class Color:
    """An RGB color with 8-bit channels."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            try:
                channel = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"Color channel '{name}' must be an integer, got {value!r}")
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channel '{name}' must be in 0..255, got {channel}")
            # Normalizes numpy integer types to plain ints
            object.__setattr__(self, name, channel)

    @classmethod
    def from_rgb(cls, rgb) -> "Color":
        r, g, b = (int(c) for c in rgb)
        return cls(r, g, b)

    def __iter__(self):
        return iter((self.r, self.g, self.b))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def to_rgb_string(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"
