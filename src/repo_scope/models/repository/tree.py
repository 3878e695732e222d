import asyncio
import re
from collections.abc import Awaitable, Callable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import ContentDirectoryItems as GitHubKitContentDirectoryItems

DEFAULT_MAX_DEPTH = 3

MAX_KEY_FILES = 15

EXCLUDED_NAMES: frozenset[str] = frozenset({"node_modules", "vendor", "dist", "build", "__pycache__", ".git"})
ALLOWED_HIDDEN_NAMES: frozenset[str] = frozenset({".github"})

KEY_FILE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        # Manifests and lockfiles
        r"^package\.json$",
        r"^requirements\.txt$",
        r"^Cargo\.toml$",
        r"^go\.mod$",
        r"^pom\.xml$",
        r"^build\.gradle$",
        r"^Gemfile$",
        r"^composer\.json$",
        r"^pyproject\.toml$",
        r"^setup\.py$",
        # Containers and CI
        r"^Dockerfile$",
        r"^docker-compose\.ya?ml$",
        r"^\.github/workflows/",
        # Frontend build configuration
        r"^tsconfig\.json$",
        r"^vite\.config\.",
        r"^webpack\.config\.",
        r"^next\.config\.",
        r"^tailwind\.config\.",
    )
)

NodeType = Literal["file", "dir"]


class RepositoryContentItem(BaseModel):
    """An entry of a directory listing from the GitHub contents API."""

    name: str
    path: str
    type: NodeType
    size: int | None = None

    @classmethod
    def from_content_directory_item(cls, item: "GitHubKitContentDirectoryItems") -> Self:
        # Symlinks and submodules are listed as files, they are never expanded.
        return cls(name=item.name, path=item.path, type="dir" if item.type == "dir" else "file", size=item.size)


class FileNode(BaseModel):
    """A file or directory of the repository tree.

    A directory that was not expanded because of the depth limit has no `children`, an expanded
    directory without entries has an empty list of `children`.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the file or directory.")
    path: str = Field(description="The path of the file or directory, relative to the repository root.")
    type: NodeType = Field(description="Whether the node is a file or a directory.")
    size: int | None = Field(default=None, description="The size of the file in bytes.")
    children: list["FileNode"] | None = Field(default=None, description="The entries of the directory, if it was expanded.")

    @model_serializer(mode="wrap")
    def _omit_absent_fields(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)

        if self.children is None:
            data.pop("children", None)

        if self.size is None:
            data.pop("size", None)

        return data

    @classmethod
    def from_content_item(cls, item: RepositoryContentItem, children: list["FileNode"] | None = None) -> Self:
        return cls(name=item.name, path=item.path, type=item.type, size=item.size, children=children)

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


DirectoryLister = Callable[[str], Awaitable[list[RepositoryContentItem]]]


def is_excluded(name: str) -> bool:
    """Whether an entry is noise that should never appear in the tree."""

    if name in EXCLUDED_NAMES:
        return True

    return name.startswith(".") and name not in ALLOWED_HIDDEN_NAMES


def tree_sort_key(item: RepositoryContentItem) -> tuple[bool, str, str]:
    """Directories first, then case-insensitive by name."""

    return (item.type != "dir", item.name.casefold(), item.name)


async def _unexpanded() -> None:
    return None


async def _build_level(list_directory: DirectoryLister, path: str, remaining_depth: int) -> list[FileNode]:
    if remaining_depth <= 0:
        return []

    items: list[RepositoryContentItem] = sorted(
        (item for item in await list_directory(path) if not is_excluded(item.name)),
        key=tree_sort_key,
    )

    expand_directories: bool = remaining_depth > 1

    children: list[list[FileNode] | None] = await asyncio.gather(
        *[
            _build_level(list_directory, item.path, remaining_depth - 1) if expand_directories and item.type == "dir" else _unexpanded()
            for item in items
        ]
    )

    return [FileNode.from_content_item(item=item, children=item_children) for item, item_children in zip(items, children, strict=True)]


async def build_file_tree(list_directory: DirectoryLister, max_depth: int = DEFAULT_MAX_DEPTH) -> list[FileNode]:
    """Build the repository tree by listing directories from the root down to `max_depth` levels.

    Args:
        list_directory: Lists the entries of a directory. Must return an empty list when the listing fails.
        max_depth: The number of levels to list. Directories on the last level are returned without `children`.
    """

    return await _build_level(list_directory, path="", remaining_depth=max_depth)


def iter_file_nodes(tree: Sequence[FileNode]) -> Iterator[FileNode]:
    """Walk the tree depth-first, yielding each node before its children."""

    for node in tree:
        yield node
        if node.children:
            yield from iter_file_nodes(node.children)


def is_key_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in KEY_FILE_PATTERNS)


def extract_key_files(tree: Sequence[FileNode], limit: int = MAX_KEY_FILES) -> list[str]:
    """Collect the paths of manifest, container, CI and build configuration files in traversal order."""

    key_files: list[str] = []

    for node in iter_file_nodes(tree):
        if len(key_files) >= limit:
            break

        if node.type == "file" and is_key_file(node.path):
            key_files.append(node.path)

    return key_files


def flatten_file_tree(tree: Sequence[FileNode], prefix: str = "") -> list[str]:
    """Render the tree as a list of paths. Directories are suffixed with `/`."""

    paths: list[str] = []

    for node in tree:
        path = f"{prefix}/{node.name}" if prefix else node.name

        if node.is_dir:
            paths.append(f"{path}/")
            if node.children:
                paths.extend(flatten_file_tree(node.children, prefix=path))
        else:
            paths.append(path)

    return paths
