from enum import Enum

ROWS = 480
ROW_SIZE = 640


def _image_rows() -> list[bytes]:
    rows = []
    for n in range(ROWS):
        row = bytearray(i & 0x7F for i in range(ROW_SIZE))
        # row number in the first two bytes
        row[0] = n // 100
        row[1] = n % 100
        rows.append(bytes(row))
    return rows


OK_ROWS = [b"ISOK"]
STATUS_ROWS = [b"MYSTATUS"]
IMAGE_ROWS = _image_rows()


class SimCommand(str, Enum):
    IMAGE = "IMAGE"
    RESET = "RESET"
    FILTER = "FILTER"
    STATUS = "STATUS"

    @property
    def rows(self) -> list[bytes]:
        """Datagrams sent back for this command, one per row."""
        if self is SimCommand.IMAGE:
            return IMAGE_ROWS
        if self is SimCommand.STATUS:
            return STATUS_ROWS
        return OK_ROWS

    @classmethod
    def parse(cls, name: str) -> "SimCommand | None":
        try:
            return cls(name)
        except ValueError:
            return None
