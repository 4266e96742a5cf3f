"""
Tests for Backend Dispatch and Collaborators
============================================

These tests verify that exactly one backend runs per build, that each
writes only its own artifacts, and that collaborators load from import
paths.
"""

import logging

import pytest

from romanos_sdk.backends import (
    BuildMode,
    Collaborators,
    PassThroughOptimizer,
    RomasmBytecodeGenerator,
    dispatch,
    load_collaborator,
)
from romanos_sdk.config import BuildConfig
from romanos_sdk.errors import CollaboratorError, GenerationError, SourceNotFound, TemplateError
from romanos_sdk.linker import link

from conftest import (
    FakeNativeGenerator,
    UppercaseOptimizer,
    make_library,
    make_primary,
)


class RecordingBytecodeGenerator:
    def __init__(self):
        self.calls = 0

    def generate(self, program):
        self.calls += 1
        return RomasmBytecodeGenerator().generate(program)


class BrokenGenerator(FakeNativeGenerator):
    def generate_boot_sector(self, instructions, data, labels):
        raise ValueError("register VIII has no x86 mapping")


@pytest.fixture
def program():
    return link([make_primary(), make_library()])


@pytest.fixture
def native():
    return FakeNativeGenerator()


@pytest.fixture
def bytecode():
    return RecordingBytecodeGenerator()


@pytest.fixture
def backends(native, bytecode):
    return Collaborators(native_generator=native, bytecode_generator=bytecode)


@pytest.fixture
def template(project):
    return project / "vm" / "romasm-vm-bootloader.asm"


# =============================================================================
# Test Backend Exclusivity
# =============================================================================

class TestDispatch:
    """Tests for dispatch()."""

    def test_native_artifacts_only(self, program, backends, native, bytecode, tmp_path):
        artifacts = dispatch(program, BuildMode.NATIVE, backends, tmp_path, "hello-world")

        assert artifacts.mode is BuildMode.NATIVE
        assert artifacts.assembly == tmp_path / "hello-world.asm"
        assert artifacts.bytecode is None
        assert artifacts.assembly.read_text() == FakeNativeGenerator.BOOT_TEXT
        assert not (tmp_path / "hello-world.rombin").exists()
        assert not (tmp_path / "hello-world-vm.asm").exists()
        assert len(native.boot_calls) == 1
        assert bytecode.calls == 0

    def test_native_receives_linked_layout(self, program, backends, native, tmp_path):
        dispatch(program, BuildMode.NATIVE, backends, tmp_path, "hello-world")
        instructions, data, labels = native.boot_calls[0]
        assert len(instructions) == 5
        assert len(data) == 1
        assert labels == {"loopStart": 0, "libFn": 3, "msg": 5}

    def test_vm_artifacts_only(self, program, backends, native, bytecode, tmp_path, template):
        artifacts = dispatch(
            program, BuildMode.VM, backends, tmp_path, "hello-world", template=template
        )

        assert artifacts.mode is BuildMode.VM
        assert artifacts.assembly == tmp_path / "hello-world-vm.asm"
        assert artifacts.bytecode == tmp_path / "hello-world.rombin"
        assert not (tmp_path / "hello-world.asm").exists()
        assert native.boot_calls == []
        assert bytecode.calls == 1

    def test_vm_bytecode_embedded(self, program, backends, tmp_path, template):
        artifacts = dispatch(
            program, BuildMode.VM, backends, tmp_path, "hello-world", template=template
        )
        blob = artifacts.bytecode.read_bytes()
        assert blob.startswith(b"RMSM")

        text = artifacts.assembly.read_text()
        assert "db 0x52, 0x4d, 0x53, 0x4d, 0x01, 0x00" in text
        assert "org 0x7C00" in text

    def test_vm_needs_no_native_generator(self, program, tmp_path, template):
        """The VM path never asks for the x86 generator."""
        artifacts = dispatch(
            program, BuildMode.VM, Collaborators(), tmp_path, "demo", template=template
        )
        assert artifacts.assembly.exists()

    def test_vm_missing_template(self, program, backends, tmp_path):
        with pytest.raises(SourceNotFound) as exc_info:
            dispatch(
                program, BuildMode.VM, backends, tmp_path, "demo",
                template=tmp_path / "missing.asm",
            )
        assert exc_info.value.role == "template"

    def test_vm_template_required(self, program, backends, tmp_path):
        with pytest.raises(GenerationError, match="bootloader template"):
            dispatch(program, BuildMode.VM, backends, tmp_path, "demo")

    def test_vm_bad_template(self, program, backends, tmp_path):
        template = tmp_path / "bad.asm"
        template.write_text("bits 16\n")
        with pytest.raises(TemplateError):
            dispatch(program, BuildMode.VM, backends, tmp_path, "demo", template=template)
        assert not (tmp_path / "demo-vm.asm").exists()

    def test_optimizer_applied(self, program, native, tmp_path):
        collaborators = Collaborators(
            native_generator=native, optimizer=UppercaseOptimizer()
        )
        artifacts = dispatch(program, BuildMode.NATIVE, collaborators, tmp_path, "demo")
        assert artifacts.assembly.read_text() == FakeNativeGenerator.BOOT_TEXT.upper()

    def test_generator_failure_wrapped(self, program, tmp_path):
        collaborators = Collaborators(native_generator=BrokenGenerator())
        with pytest.raises(GenerationError, match="x86 generator failed: register VIII"):
            dispatch(program, BuildMode.NATIVE, collaborators, tmp_path, "demo")
        assert not (tmp_path / "demo.asm").exists()

    def test_native_without_generator(self, program, tmp_path):
        with pytest.raises(CollaboratorError, match="ROMANOS_NATIVE_GENERATOR"):
            dispatch(program, BuildMode.NATIVE, Collaborators(), tmp_path, "demo")

    def test_layout_logged(self, program, backends, tmp_path, caplog):
        with caplog.at_level(logging.DEBUG, logger="romanos_sdk.backends.dispatcher"):
            dispatch(program, BuildMode.NATIVE, backends, tmp_path, "demo")
        assert "Instruction count: 5" in caplog.text
        assert "msg -> data address 0" in caplog.text
        assert "libFn -> instruction address 3" in caplog.text


# =============================================================================
# Test Collaborator Loading
# =============================================================================

class TestLoadCollaborator:
    """Tests for load_collaborator() and Collaborators.from_config()."""

    def test_class_is_instantiated(self):
        optimizer = load_collaborator(
            "romanos_sdk.backends.collaborators:PassThroughOptimizer"
        )
        assert isinstance(optimizer, PassThroughOptimizer)

    def test_object_returned_as_is(self):
        marker = load_collaborator("romanos_sdk.config:DEFAULT_EXAMPLE")
        assert marker == "hello-world"

    def test_malformed_path(self):
        with pytest.raises(CollaboratorError, match="expected 'package.module:attribute'"):
            load_collaborator("romanos_sdk.backends")

    def test_missing_module(self):
        with pytest.raises(CollaboratorError, match="cannot import"):
            load_collaborator("romanos_sdk.no_such_module:Thing")

    def test_missing_attribute(self):
        with pytest.raises(CollaboratorError, match="has no attribute"):
            load_collaborator("romanos_sdk.backends.collaborators:NoSuchThing")

    def test_defaults(self):
        collaborators = Collaborators()
        assert isinstance(collaborators.optimizer, PassThroughOptimizer)
        assert isinstance(collaborators.bytecode_generator, RomasmBytecodeGenerator)
        assert collaborators.assembler is None

    def test_from_config(self):
        config = BuildConfig(
            optimizer="romanos_sdk.backends.collaborators:PassThroughOptimizer",
            bytecode_generator="romanos_sdk.backends.bytecode:RomasmBytecodeGenerator",
        )
        collaborators = Collaborators.from_config(config)
        assert isinstance(collaborators.optimizer, PassThroughOptimizer)
        assert isinstance(collaborators.bytecode_generator, RomasmBytecodeGenerator)

    def test_require_assembler(self):
        with pytest.raises(CollaboratorError, match="ROMANOS_ASSEMBLER"):
            Collaborators().require_assembler()
