"""
Type descriptors for typestate IR.

Storage types are kept as Python type expressions (``int``,
``list[str]``, ``Path | None``) and only inspected as far as the
generator needs: optionality and the callable used to construct a value.
"""

from __future__ import annotations

import ast

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_OPTIONAL_NAMES = ("Optional", "typing.Optional")
_UNION_NAMES = ("Union", "typing.Union")


class TypeRef(BaseModel):
    """
    A Python type expression used as a field's storage type.

    Examples:
        - TypeRef(expr="int")
        - TypeRef(expr="list[str]")
        - TypeRef(expr="Optional[Path]")
    """

    expr: str

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def coerce_string(cls, data: object) -> object:
        """Allow a bare string wherever a TypeRef is expected."""
        if isinstance(data, str):
            return {"expr": data}
        return data

    @field_validator("expr")
    @classmethod
    def validate_expr(cls, v: str) -> str:
        """Ensure the type is a well-formed Python expression."""
        v = v.strip()
        try:
            ast.parse(v, mode="eval")
        except SyntaxError as e:
            raise ValueError(f"Type '{v}' is not a valid Python type expression") from e
        return v

    def __str__(self) -> str:
        return self.expr

    @property
    def is_optional(self) -> bool:
        """Check if the type admits None (``X | None`` or ``Optional[X]``)."""
        return self._non_none_part() is not None

    @property
    def inner(self) -> str:
        """The type with a top-level ``None`` alternative removed."""
        return self._non_none_part() or self.expr

    @property
    def is_union(self) -> bool:
        """Check if more than one non-None alternative remains (``int | str``)."""
        return len(_union_members(ast.parse(self.inner, mode="eval").body)) > 1

    @property
    def constructor(self) -> str:
        """
        Callable expression that constructs a value of this type.

        Subscriptions are dropped (``list[str]`` -> ``list``) and optional
        wrappers are unwrapped (``int | None`` -> ``int``).
        """
        node = ast.parse(self.inner, mode="eval").body
        if isinstance(node, ast.Subscript):
            node = node.value
        return ast.unparse(node)

    def _non_none_part(self) -> str | None:
        node = ast.parse(self.expr, mode="eval").body
        if isinstance(node, ast.Subscript) and ast.unparse(node.value) in _OPTIONAL_NAMES:
            return ast.unparse(node.slice)
        members = _union_members(node)
        rest = [m for m in members if not _is_none(m)]
        if rest and len(rest) < len(members):
            return " | ".join(ast.unparse(m) for m in rest)
        return None


class GenericParam(BaseModel):
    """
    A type parameter of the target record.

    Rendered as ``T = TypeVar("T", bound=...)`` and threaded through the
    record and every state class.
    """

    name: str
    bound: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def coerce_string(cls, data: object) -> object:
        if isinstance(data, str):
            return {"name": data}
        return data


def _union_members(node: ast.expr) -> list[ast.expr]:
    """Alternatives of ``A | B`` or ``Union[A, B]``; a single type otherwise."""
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    if isinstance(node, ast.Subscript) and ast.unparse(node.value) in _UNION_NAMES:
        if isinstance(node.slice, ast.Tuple):
            return [m for elt in node.slice.elts for m in _union_members(elt)]
        return _union_members(node.slice)
    return [node]


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None
