from typing import List, Optional

from .config import get_settings

# Display order of the language dropdown. Names must match GitHub's
# linguist names so they can be used in a `language:` qualifier.
DEFAULT_LANGUAGES: tuple[str, ...] = (
    "JavaScript",
    "TypeScript",
    "Python",
    "Java",
    "C",
    "C++",
    "C#",
    "Go",
    "Rust",
    "Ruby",
    "PHP",
    "Swift",
    "Kotlin",
    "Dart",
    "Scala",
    "Elixir",
    "Haskell",
    "Lua",
    "Perl",
    "R",
    "Julia",
    "Shell",
    "PowerShell",
    "Clojure",
    "Erlang",
    "OCaml",
    "Zig",
    "Nim",
    "Crystal",
    "Fortran",
)


def get_languages(override: Optional[List[str]] = None) -> List[str]:
    """Return the language catalog, preserving order.

    An explicit ``override`` (or the ``LANGUAGES`` setting) wins over the
    built-in list, including when it is empty.
    """
    if override is not None:
        return list(override)
    configured = get_settings().languages
    if configured is not None:
        return list(configured)
    return list(DEFAULT_LANGUAGES)
