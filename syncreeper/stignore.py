"""
Projection of per-repository .gitignore patterns into Syncthing's .stignore.

Syncthing's #include directive does not scope patterns to the directory of
the included file (every pattern is relative to the sync root), so each
repository's .gitignore is read and every pattern is prefixed with the
repository's owner/repo path. Git comments (#) become Syncthing comments
(//) so they are not parsed as directives.

Only the region between the two sentinel lines is ever rewritten; the rest
of .stignore belongs to whoever manages it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .config import STIGNORE_FILE_NAME

GITIGNORE_SECTION_START = "// AUTO-GENERATED GITIGNORE PATTERNS"
GITIGNORE_SECTION_END = "// END AUTO-GENERATED GITIGNORE PATTERNS"


@dataclass(frozen=True)
class GitignoreFile:
    """A .gitignore found directly inside <repos_root>/<owner>/<repo>."""
    gitignore_path: Path
    repo_rel_path: str


@dataclass
class ProjectedIgnore:
    """Converted patterns of one repository's .gitignore."""
    repo_rel_path: str
    lines: List[str]


def convert_gitignore_line(line: str, repo_rel_path: str) -> str:
    """
    Convert one .gitignore line into a Syncthing pattern scoped to repo_rel_path.

    - blank lines stay blank
    - "# text" becomes "// text"
    - a leading "!" is kept in front of the repository prefix
    - a leading "/" (anchored at the repository root) is dropped
    - a trailing "/" is dropped; Syncthing matches a directory and its
      contents without it
    """
    trimmed = line.strip()
    if not trimmed:
        return ""

    if trimmed.startswith("#"):
        return f"// {trimmed[1:].strip()}"

    pattern = trimmed
    prefix = ""

    if pattern.startswith("!"):
        prefix = "!"
        pattern = pattern[1:]

    if pattern.startswith("/"):
        pattern = pattern[1:]

    if pattern.endswith("/"):
        pattern = pattern[:-1]

    if not pattern:
        return ""

    return f"{prefix}{repo_rel_path}/{pattern}"


def convert_gitignore_content(content: str, repo_rel_path: str) -> List[str]:
    """Convert the full text of a .gitignore, dropping trailing blank lines."""
    converted = [convert_gitignore_line(line, repo_rel_path) for line in content.split("\n")]

    while converted and converted[-1] == "":
        converted.pop()

    return converted


def convert_gitignore_file(gitignore_path: Path, repo_rel_path: str) -> Optional[List[str]]:
    """
    Read and convert one .gitignore file.

    Returns:
        The converted lines, or None if the file is unreadable or yields
        nothing but blank lines
    """
    logger = logging.getLogger('syncreeper.stignore')
    try:
        content = gitignore_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {gitignore_path}: {e}")
        return None

    converted = convert_gitignore_content(content, repo_rel_path)
    return converted or None


def _list_directories(path: Path) -> List[Path]:
    """Subdirectories of path; an unreadable path has none."""
    try:
        return [entry for entry in path.iterdir() if entry.is_dir()]
    except OSError:
        return []


def find_gitignore_files(repos_root: Path) -> List[GitignoreFile]:
    """
    Find .gitignore files at <repos_root>/<owner>/<repo>/.gitignore.

    Results are sorted by owner/repo so the generated section does not depend
    on directory listing order.
    """
    results = []

    for owner_dir in _list_directories(repos_root):
        for repo_dir in _list_directories(owner_dir):
            gitignore_path = repo_dir / ".gitignore"
            if gitignore_path.is_file():
                results.append(GitignoreFile(
                    gitignore_path=gitignore_path,
                    repo_rel_path=f"{owner_dir.name}/{repo_dir.name}"
                ))

    results.sort(key=lambda entry: entry.repo_rel_path)
    return results


def build_ignore_projection(repos_root: Path) -> List[ProjectedIgnore]:
    """Convert every discovered .gitignore, omitting files that produce nothing."""
    projection = []
    for entry in find_gitignore_files(repos_root):
        lines = convert_gitignore_file(entry.gitignore_path, entry.repo_rel_path)
        if lines:
            projection.append(ProjectedIgnore(repo_rel_path=entry.repo_rel_path, lines=lines))
    return projection


def render_gitignore_section(projection: List[ProjectedIgnore]) -> str:
    """Render the sentinel-delimited section, without a trailing newline."""
    sections = [GITIGNORE_SECTION_START]

    for entry in projection:
        sections.append(f"// --- {entry.repo_rel_path}/.gitignore ---")
        sections.extend(entry.lines)
        sections.append("")

    if sections[-1] == "":
        sections.pop()

    sections.append(GITIGNORE_SECTION_END)
    return "\n".join(sections)


def generate_gitignore_section(repos_root: Path) -> str:
    """Generate the auto-generated section from all .gitignore files under repos_root."""
    return render_gitignore_section(build_ignore_projection(repos_root))


def splice_gitignore_section(stignore_content: str, section: str) -> Optional[str]:
    """
    Replace the span from the start sentinel through the end sentinel.

    Returns:
        The new file content, or None if either sentinel is missing or the
        end sentinel precedes the start sentinel
    """
    start_idx = stignore_content.find(GITIGNORE_SECTION_START)
    end_idx = stignore_content.find(GITIGNORE_SECTION_END)

    if start_idx == -1 or end_idx == -1 or end_idx < start_idx:
        return None

    before = stignore_content[:start_idx]
    after = stignore_content[end_idx + len(GITIGNORE_SECTION_END):]
    return before + section + after


def project_ignore_patterns(repos_root: Path, stignore_path: Optional[Path] = None) -> bool:
    """
    Rewrite the generated section of .stignore from the repositories' .gitignore files.

    Never raises: a missing file, missing sentinels or an I/O failure is
    logged as a warning and leaves the file untouched. The file is only
    written when its content would change.

    Args:
        repos_root: Root of the <owner>/<repo> tree
        stignore_path: Shared ignore file, <repos_root>/.stignore by default

    Returns:
        True if the file was rewritten, False otherwise
    """
    logger = logging.getLogger('syncreeper.stignore')
    repos_root = Path(repos_root)
    stignore_path = stignore_path or repos_root / STIGNORE_FILE_NAME

    try:
        # newline="" keeps line endings outside the generated section byte-identical
        with open(stignore_path, "r", encoding="utf-8", newline="") as f:
            stignore_content = f.read()
    except FileNotFoundError:
        logger.warning(f"{stignore_path} not found, skipping gitignore pattern update")
        return False
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {stignore_path}, skipping gitignore pattern update: {e}")
        return False

    try:
        projection = build_ignore_projection(repos_root)
        updated_content = splice_gitignore_section(stignore_content, render_gitignore_section(projection))
    except Exception as e:
        logger.warning(f"Failed to generate gitignore patterns: {e}", exc_info=True)
        return False

    if updated_content is None:
        logger.warning(
            f"{stignore_path} is missing the auto-generated section markers, "
            "skipping gitignore pattern update"
        )
        return False

    if updated_content == stignore_content:
        logger.info(".stignore gitignore patterns unchanged")
        return False

    try:
        with open(stignore_path, "w", encoding="utf-8", newline="") as f:
            f.write(updated_content)
    except OSError as e:
        logger.warning(f"Failed to update {stignore_path}: {e}")
        return False

    logger.info(f"Updated .stignore with patterns from {len(projection)} .gitignore files")
    return True
