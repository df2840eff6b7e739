# args.py
from __future__ import annotations

import sys
from typing import Dict, List, Optional, Sequence, Union

ArgValue = Union[str, List[str], bool]


def get_args(argv: Optional[Sequence[str]] = None) -> Dict[str, ArgValue]:
    """
    Parse loose `--name value` style arguments.

      --name value   -> {"name": "value"}
      --name a,b     -> {"name": ["a", "b"]}
      --name --other -> {"name": True, "other": True}
      --name         -> {"name": True}   (last token)

    Tokens that don't follow a flag are ignored. `argv` excludes the program
    name; it defaults to sys.argv[1:].
    """
    if argv is None:
        argv = sys.argv[1:]

    args: Dict[str, ArgValue] = {}
    name: Optional[str] = None

    for arg in argv:
        if arg.startswith("--"):
            # previous was also a flag, so it's a boolean
            if name:
                args[name] = True
            name = arg[2:]
            continue
        if name:
            args[name] = arg.split(",") if "," in arg else arg
            name = None

    if name:
        args[name] = True
    return args
