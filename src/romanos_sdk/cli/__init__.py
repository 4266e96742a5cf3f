"""
RomanOS SDK Command-Line Interface
==================================

This package provides command-line tools for the RomanOS SDK:

- **rosbuild**: Romasm -> linked program -> x86/VM -> NASM -> floppy image
- **rosconv**: Single Romasm file -> x86 assembly text
- **rosrun**: Boot a built image in QEMU

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["rosbuild", "rosconv", "rosrun"]
