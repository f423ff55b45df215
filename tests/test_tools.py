"""
Tests for the tool registry, the file tools and the executor.
"""

import json

import pytest
from pydantic import BaseModel

from jellyfin_organizer.conversation import ToolCall
from jellyfin_organizer.sandbox import (
    LibraryRoots,
    MalformedInputError,
    MediaFileOperations,
    PathSandbox,
)
from jellyfin_organizer.tools import (
    ToolDefinition,
    ToolExecutor,
    ToolRegistry,
    ToolRegistryError,
    build_default_registry,
)


class EchoInput(BaseModel):
    text: str


async def echo(args: EchoInput) -> str:
    return args.text


async def explode(args: EchoInput) -> str:
    raise RuntimeError("boom")


async def disk_error(args: EchoInput) -> str:
    raise PermissionError(13, "Permission denied")


def make_tool(name="echo", handler=echo, description="Echo text back"):
    return ToolDefinition(name=name, description=description, input_model=EchoInput, handler=handler)


@pytest.fixture
def library(tmp_path):
    base = tmp_path.resolve()
    for name in ("movies", "shows", "source"):
        (base / name).mkdir()
    return base


@pytest.fixture
def registry(library):
    roots = LibraryRoots(
        movies=library / "movies",
        shows=library / "shows",
        source=library / "source",
    )
    return build_default_registry(MediaFileOperations(PathSandbox(roots)))


@pytest.fixture
def executor(registry):
    return ToolExecutor(registry)


class TestToolRegistry:
    """Test ToolRegistry validation and schemas."""

    def test_default_tools(self, registry):
        """Test that the default registry holds the five tools in order."""
        assert list(registry) == [
            "read_file",
            "list_directory",
            "copy_file",
            "rename_jellyfin_media",
            "search_imdb",
        ]

    def test_schemas_shape(self, registry):
        """Test the provider-neutral declarations."""
        for schema in registry.schemas():
            assert set(schema) == {"name", "description", "input_schema"}
            assert schema["input_schema"]["type"] == "object"
            assert "title" not in schema["input_schema"]

    def test_read_file_schema_uses_bytes(self, registry):
        """Test that read_file exposes its limit as 'bytes'."""
        schema = registry["read_file"].input_schema()
        assert "bytes" in schema["properties"]
        assert schema["required"] == ["path"]

    def test_list_directory_schema_enum(self, registry):
        """Test that the root selector is an enum."""
        prop = registry["list_directory"].input_schema()["properties"]["type"]
        assert prop["enum"] == ["movies", "shows", "source"]

    def test_duplicate_name_rejected(self):
        with pytest.raises(ToolRegistryError):
            ToolRegistry([make_tool(), make_tool()])

    def test_invalid_name_rejected(self):
        with pytest.raises(ToolRegistryError):
            ToolRegistry([make_tool(name="read file")])

    def test_long_name_rejected(self):
        with pytest.raises(ToolRegistryError):
            ToolRegistry([make_tool(name="x" * 65)])

    def test_empty_description_rejected(self):
        with pytest.raises(ToolRegistryError):
            ToolRegistry([make_tool(description="  ")])

    def test_non_model_input_rejected(self):
        with pytest.raises(ToolRegistryError):
            ToolRegistry([ToolDefinition(name="x", description="x", input_model=dict, handler=echo)])

    def test_mapping_interface(self):
        """Test lookups by name."""
        registry = ToolRegistry([make_tool()])
        assert "echo" in registry
        assert len(registry) == 1
        assert registry.get("missing") is None


class TestParseArguments:
    """Test ToolDefinition.parse_arguments."""

    def test_dict(self):
        assert make_tool().parse_arguments({"text": "hi"}).text == "hi"

    def test_json_string(self):
        assert make_tool().parse_arguments('{"text": "hi"}').text == "hi"

    def test_invalid_json(self):
        with pytest.raises(MalformedInputError) as exc_info:
            make_tool().parse_arguments("{not json")
        assert "echo" in str(exc_info.value)

    def test_non_object(self):
        with pytest.raises(MalformedInputError):
            make_tool().parse_arguments("[1, 2]")

    def test_missing_field(self):
        with pytest.raises(MalformedInputError) as exc_info:
            make_tool().parse_arguments(None)
        assert "text" in str(exc_info.value)


class TestToolExecutor:
    """Test ToolExecutor."""

    @pytest.mark.asyncio
    async def test_success(self):
        executor = ToolExecutor(ToolRegistry([make_tool()]))
        result = await executor.execute("echo", {"text": "hello"}, call_id="c1")
        assert result.call_id == "c1"
        assert result.output == "hello"
        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor):
        """Test that an unknown tool yields a failure result, not an exception."""
        result = await executor.execute("delete_everything", {}, call_id="c2")
        assert result.is_error is True
        assert result.output == "tool not found: delete_everything"
        assert result.call_id == "c2"

    @pytest.mark.asyncio
    async def test_malformed_arguments(self, executor):
        result = await executor.execute("list_directory", {"type": "music"}, call_id="c3")
        assert result.is_error is True
        assert "Invalid input for list_directory" in result.output

    @pytest.mark.asyncio
    async def test_extra_arguments_rejected(self, executor, library):
        result = await executor.execute(
            "read_file", {"path": str(library / "movies" / "a.nfo"), "mode": "w"}
        )
        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_containment_failure(self, executor):
        result = await executor.execute("read_file", {"path": "/etc/passwd"})
        assert result.is_error is True
        assert "/etc/passwd" in result.output

    @pytest.mark.asyncio
    async def test_unexpected_exception(self):
        executor = ToolExecutor(ToolRegistry([make_tool(handler=explode)]))
        result = await executor.execute("echo", {"text": "x"})
        assert result.is_error is True
        assert "boom" in result.output

    @pytest.mark.asyncio
    async def test_os_error(self):
        executor = ToolExecutor(ToolRegistry([make_tool(handler=disk_error)]))
        result = await executor.execute("echo", {"text": "x"})
        assert result.is_error is True
        assert result.output.startswith("I/O error:")

    @pytest.mark.asyncio
    async def test_run_tool_call(self, executor, library):
        """Test running a ToolCall with JSON-string arguments."""
        call = ToolCall(id="c4", name="list_directory", arguments=json.dumps({"type": "movies"}))
        result = await executor.run(call)
        assert result.call_id == "c4"
        assert result.output == ""
        assert result.is_error is False


class TestFileTools:
    """Test the file tools end to end through the executor."""

    @pytest.mark.asyncio
    async def test_list_copy_read_session(self, executor, library):
        """Test a typical organize sequence."""
        src = library / "source" / "the.matrix.1999.mkv"
        src.write_bytes(b"\x00\x01video")
        dst = library / "movies" / "The Matrix (1999)" / "The Matrix (1999).mkv"

        listing = await executor.execute("list_directory", {"type": "movies"})
        assert listing.output == ""
        assert listing.is_error is False

        copied = await executor.execute(
            "copy_file", {"initial_path": str(src), "ending_path": str(dst)}
        )
        assert copied.is_error is False
        assert str(src) in copied.output and str(dst) in copied.output

        read = await executor.execute("read_file", {"path": str(dst)})
        assert read.is_error is True
        assert "image or video" in read.output

    @pytest.mark.asyncio
    async def test_read_bytes_argument(self, executor, library):
        nfo = library / "movies" / "movie.nfo"
        nfo.write_text("abcdef")
        result = await executor.execute("read_file", {"path": str(nfo), "bytes": 3})
        assert result.output == "abc"

    @pytest.mark.asyncio
    async def test_negative_bytes_rejected(self, executor, library):
        result = await executor.execute(
            "read_file", {"path": str(library / "movies" / "a.nfo"), "bytes": -5}
        )
        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_rename_escape_rejected(self, executor, library):
        """Test that a move target outside the library changes nothing."""
        src = library / "movies" / "a.mkv"
        src.write_bytes(b"a")
        result = await executor.execute(
            "rename_jellyfin_media",
            {"source_path": str(src), "target_path": "../../etc/passwd"},
        )
        assert result.is_error is True
        assert src.exists()

    @pytest.mark.asyncio
    async def test_rename_success(self, executor, library):
        src = library / "shows" / "show.s01e01.mkv"
        src.write_bytes(b"a")
        dst = library / "shows" / "Show" / "Season 01" / "Show S01E01.mkv"
        result = await executor.execute(
            "rename_jellyfin_media", {"source_path": str(src), "target_path": str(dst)}
        )
        assert result.is_error is False
        assert result.output == f"Successfully moved/renamed {src} to {dst}"
        assert dst.exists()
