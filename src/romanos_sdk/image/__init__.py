"""
Boot Image Packaging
====================

Turns the flat binary produced by the external assembler into a bootable
1.44MB floppy image.
"""

from romanos_sdk.image.builder import (
    BOOT_SECTOR_SIZE,
    BOOT_SIGNATURE,
    BOOT_SIGNATURE_OFFSET,
    FLOPPY_SIZE,
    BootImage,
    build_boot_image,
)

__all__ = [
    "BOOT_SECTOR_SIZE",
    "BOOT_SIGNATURE",
    "BOOT_SIGNATURE_OFFSET",
    "FLOPPY_SIZE",
    "BootImage",
    "build_boot_image",
]
