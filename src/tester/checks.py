"""House rules for a package's tsconfig.json and package.json."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from common.data_files import read_json
from common.errors import ValidationError
from constants import Constants


def check_tsconfig(tsconfig: Mapping[str, Any]) -> None:
    """Validate ``compilerOptions`` of a parsed tsconfig.json.

    Raises:
        ValidationError: Naming the first offending option.
    """
    options = tsconfig.get("compilerOptions") if isinstance(tsconfig, Mapping) else None
    if not isinstance(options, Mapping):
        raise ValidationError('Expected tsconfig.json to have "compilerOptions"')

    for key, value in Constants.REQUIRED_COMPILER_OPTIONS.items():
        actual = options.get(key)
        # `True == 1` in Python; compare types too so 1 doesn't pass for true.
        if actual != value or type(actual) is not type(value):
            raise ValidationError(
                f"Expected compilerOptions[{json.dumps(key)}] === {json.dumps(value)}"
            )

    if not all(key in options for key in Constants.PRESENT_COMPILER_OPTIONS):
        quoted = " and ".join(f"compilerOptions[{json.dumps(k)}]" for k in Constants.PRESENT_COMPILER_OPTIONS)
        raise ValidationError(f"Expected {quoted} to exist")

    # baseUrl / typeRoots / types may be missing.
    if options.get("types"):
        raise ValidationError(
            'Use `/// <reference types="" />` in source files instead of using "types" in tsconfig.'
        )


def check_package_json(path: str, reader: Callable[[str], Any] = read_json) -> None:
    """Only ``dependencies``, ``peerDependencies`` and ``description`` are allowed.

    Raises:
        ValidationError: Naming the first disallowed field and the file.
    """
    pkg = reader(path)
    if not isinstance(pkg, Mapping):
        raise ValidationError(f"Expected an object in {path}")
    for field in pkg:
        if field not in Constants.ALLOWED_PACKAGE_JSON_FIELDS:
            raise ValidationError(f"Ignored field in {path}: {field}")
