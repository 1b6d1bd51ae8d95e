"""
Extractor option store

Options map a command-line flag of the extractor ("-f", "--playlist-items",
"--no-playlist", ...) to its value, or to None for presence-only flags.
The store renders itself as an argument list ready to append to a command.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple


class Options:
    """
    Ordered mapping of extractor flags to values

    Insertion order is kept so the rendered argument list is stable.

    Example:
        options = Options({'-f': '18/best', '--no-playlist': None})
        options.set_option('--playlist-items', '1,3-5')
        options.get_options()
        # ['-f', '18/best', '--no-playlist', '--playlist-items', '1,3-5']
    """

    def __init__(self, options: Optional[Mapping[str, Optional[object]]] = None):
        self._options: Dict[str, Optional[str]] = {}
        if options:
            self.add_options(options)

    def add_options(self, options: Mapping[str, Optional[object]]) -> None:
        """
        Merge flags into the store, later values overriding earlier ones

        Args:
            options: Mapping of flag to value (None for presence-only flags)
        """
        for flag, value in options.items():
            self.set_option(flag, value)

    def set_option(self, flag: str, value: Optional[object] = None) -> None:
        """Set a flag, converting its value to string"""
        if not flag:
            raise ValueError("Option flag cannot be empty")
        self._options[flag] = None if value is None else str(value)

    def get_option(self, flag: str, default: Optional[str] = None) -> Optional[str]:
        """Value of a flag, `default` when unset or presence-only"""
        value = self._options.get(flag)
        return default if value is None else value

    def remove_option(self, flag: str) -> None:
        self._options.pop(flag, None)

    def is_option(self, flag: str) -> bool:
        """True when the flag is set, with or without a value"""
        return flag in self._options

    def has_any(self, *flags: str) -> bool:
        return any(flag in self._options for flag in flags)

    def get_options(self, exclude: Iterable[str] = ()) -> List[str]:
        """
        Render the store as an argument list

        Args:
            exclude: Flags left out of the rendered list. The store itself
                     is not modified.

        Returns:
            Flat list of arguments, each flag followed by its value if any
        """
        excluded = set(exclude)
        arguments: List[str] = []
        for flag, value in self._options.items():
            if flag in excluded:
                continue
            arguments.append(flag)
            if value is not None:
                arguments.append(value)
        return arguments

    def __len__(self) -> int:
        return len(self._options)

    def __contains__(self, flag: object) -> bool:
        return flag in self._options

    def __repr__(self) -> str:
        return f"Options({self._options!r})"


def parse_flag(text: str) -> Tuple[str, Optional[str]]:
    """
    Split a "--flag=value" string into its flag and value

    A string without "=" is a presence-only flag. Leading dashes are added
    when missing: "cookies=c.txt" becomes ("--cookies", "c.txt") and
    "x" becomes ("-x", None).

    Args:
        text: Raw flag text, usually from the command line

    Returns:
        Tuple of (flag, value or None)
    """
    text = text.strip()
    if not text:
        raise ValueError("Option flag cannot be empty")

    flag, sep, value = text.partition("=")
    flag = flag.strip()
    if not flag.startswith("-"):
        flag = f"-{flag}" if len(flag) == 1 else f"--{flag}"

    return flag, (value if sep else None)
