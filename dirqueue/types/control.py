"""
Control record type definitions.
"""

from pathlib import Path

from pydantic import BaseModel, Field

from dirqueue.constants import CONTROL_SEPARATOR, ControlField


class ControlRecord(BaseModel):
    """
    Envelope written to ``queue/`` for every job.

    The five fixed fields are always written first and in order, followed by
    the caller's metadata.
    """

    data_path: Path
    size: int = Field(ge=0)
    timestamp_seconds: int
    timestamp_microseconds: int = Field(ge=0, le=999_999)
    hostname: str
    metadata: dict[str, str] = Field(default_factory=dict)

    def fixed_fields(self) -> list[tuple[ControlField, str]]:
        """Fixed fields as ordered ``(key, value)`` pairs."""
        return [
            (ControlField.DATA_FILENAME, str(self.data_path)),
            (ControlField.DATA_SIZE_BYTES, str(self.size)),
            (ControlField.SUBMIT_TIME_SECONDS, str(self.timestamp_seconds)),
            (ControlField.SUBMIT_TIME_MICROSECONDS, str(self.timestamp_microseconds)),
            (ControlField.SUBMIT_HOSTNAME, self.hostname),
        ]

    def render(self) -> str:
        """Serialize as ``KEY: value`` lines. Metadata is not validated here."""
        lines = [f"{key}{CONTROL_SEPARATOR}{value}\n" for key, value in self.fixed_fields()]
        lines.extend(
            f"{key}{CONTROL_SEPARATOR}{value}\n" for key, value in self.metadata.items()
        )
        return "".join(lines)

    @classmethod
    def parse(cls, text: str) -> "ControlRecord":
        """
        Parse a control file's contents.

        Raises:
            ValueError: If a line is malformed or a fixed field is missing.
        """
        fields: dict[str, str] = {}
        for line in text.splitlines():
            if not line:
                continue
            key, sep, value = line.partition(CONTROL_SEPARATOR)
            if not sep:
                raise ValueError(f"Malformed control line: {line!r}")
            fields[key] = value

        missing = [f.value for f in ControlField if f.value not in fields]
        if missing:
            raise ValueError(f"Control record missing fields: {', '.join(missing)}")

        fixed = {f.value for f in ControlField}
        return cls(
            data_path=Path(fields[ControlField.DATA_FILENAME]),
            size=int(fields[ControlField.DATA_SIZE_BYTES]),
            timestamp_seconds=int(fields[ControlField.SUBMIT_TIME_SECONDS]),
            timestamp_microseconds=int(fields[ControlField.SUBMIT_TIME_MICROSECONDS]),
            hostname=fields[ControlField.SUBMIT_HOSTNAME],
            metadata={k: v for k, v in fields.items() if k not in fixed},
        )
