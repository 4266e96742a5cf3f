"""
Boot Image Builder
==================

Packages a raw boot-sector binary into a 1.44MB floppy disk image that
firmware can boot directly.

Image Layout
------------
    Offset      Size        Contents
    0           510         Boot sector code (from the raw binary)
    510         2           Boot signature 0x55 0xAA
    512         1,474,048   Zero fill

Only the first 512 bytes of the raw binary fit in the boot sector. Any
excess is dropped; the condition is logged as a warning and flagged on
the returned image so the caller can report it. The signature is always
written last, overwriting whatever the binary held at offsets 510-511.

Usage
-----
    >>> from romanos_sdk.image import build_boot_image
    >>> image = build_boot_image(Path("hello-world.bin").read_bytes())
    >>> image.write_to_file(Path("hello-world.img"))
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union
import logging

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FLOPPY_SIZE = 1440 * 1024          # 1,474,560 bytes
BOOT_SECTOR_SIZE = 512
BOOT_SIGNATURE_OFFSET = 510
BOOT_SIGNATURE = bytes([0x55, 0xAA])


# =============================================================================
# Boot Image
# =============================================================================

@dataclass(frozen=True)
class BootImage:
    """
    A finished floppy image.

    Attributes:
        data: The complete image, exactly FLOPPY_SIZE bytes
        boot_code_size: Length of the raw binary that was packaged
        truncated: True if the raw binary did not fit in the boot sector
    """
    data: bytes
    boot_code_size: int
    truncated: bool = False

    @property
    def boot_sector(self) -> bytes:
        return self.data[:BOOT_SECTOR_SIZE]

    @property
    def signature(self) -> bytes:
        return self.data[BOOT_SIGNATURE_OFFSET:BOOT_SECTOR_SIZE]

    def write_to_file(self, path: Union[str, Path]) -> int:
        """Write the image to disk, returning the number of bytes written."""
        path = Path(path)
        path.write_bytes(self.data)
        logger.debug(f"Wrote boot image {path} ({len(self.data)} bytes)")
        return len(self.data)


def build_boot_image(raw_binary: bytes) -> BootImage:
    """
    Build a floppy image from a raw boot-sector binary.

    Pure and deterministic: identical input yields identical bytes.

    Args:
        raw_binary: Flat binary produced by the external assembler

    Returns:
        BootImage with the boot sector copied in and the signature set
    """
    buffer = bytearray(FLOPPY_SIZE)

    boot_code = raw_binary[:BOOT_SECTOR_SIZE]
    buffer[:len(boot_code)] = boot_code

    truncated = len(raw_binary) > BOOT_SECTOR_SIZE
    if truncated:
        logger.warning(
            f"Boot sector is larger than {BOOT_SECTOR_SIZE} bytes "
            f"({len(raw_binary)} bytes); "
            f"{len(raw_binary) - BOOT_SECTOR_SIZE} bytes discarded"
        )

    buffer[BOOT_SIGNATURE_OFFSET:BOOT_SECTOR_SIZE] = BOOT_SIGNATURE

    return BootImage(
        data=bytes(buffer),
        boot_code_size=len(raw_binary),
        truncated=truncated,
    )
