# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Closed type vocabulary shared by signature synthesis and overload resolution.

Source type tags come from the declaration table (`dynamic_type`) and from the
argument lists of formula headers. Each recognized tag maps to exactly one
TypeToken; the token value is its spelling in generated Nim code. Anything
else is an `UnsupportedType`, scoped to the entry that referenced it.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict

from .errors import UnsupportedType


class TypeToken(Enum):
	"""Target types understood by the generator (value = Nim spelling)."""

	TENSOR = "Tensor"
	TENSOR_OPTIONS = "TensorOptions"
	STORAGE = "AStorage"
	TENSOR_LIST = "TensorList"
	INT64 = "int64"
	BOOL = "bool"
	FLOAT = "float"
	FLOAT64 = "float64"
	POINTER = "pointer"
	INT_LIST = "IntList"
	BOOL_ARRAY_2 = "StdArray[bool, 2]"
	BOOL_ARRAY_3 = "StdArray[bool, 3]"
	BOOL_ARRAY_4 = "StdArray[bool, 4]"
	SCALAR_TYPE = "AScalarType"
	STRING = "StdString"
	TENSOR_TYPE = "TensorType"
	SPARSE_TENSOR_REF = "ASparseTensorRef"
	VOID = "void"

	@property
	def spelling(self) -> str:
		return self.value

	@property
	def is_tensor(self) -> bool:
		return self is TypeToken.TENSOR

	@property
	def is_list(self) -> bool:
		return self in (TypeToken.INT_LIST, TypeToken.TENSOR_LIST)


_SOURCE_TAGS: Dict[str, TypeToken] = {
	"Tensor": TypeToken.TENSOR,
	"BoolTensor": TypeToken.TENSOR,
	"IndexTensor": TypeToken.TENSOR,
	"IntegerTensor": TypeToken.TENSOR,
	"TensorOptions": TypeToken.TENSOR_OPTIONS,
	"Storage": TypeToken.STORAGE,
	"TensorList": TypeToken.TENSOR_LIST,
	"int64_t": TypeToken.INT64,
	"bool": TypeToken.BOOL,
	"real": TypeToken.FLOAT,
	"accreal": TypeToken.FLOAT,
	"Scalar": TypeToken.FLOAT,
	"double": TypeToken.FLOAT64,
	"Generator*": TypeToken.POINTER,
	"Generator *": TypeToken.POINTER,
	"Generator": TypeToken.POINTER,
	"IntList": TypeToken.INT_LIST,
	"std::array<bool,2>": TypeToken.BOOL_ARRAY_2,
	"std::array<bool,3>": TypeToken.BOOL_ARRAY_3,
	"std::array<bool,4>": TypeToken.BOOL_ARRAY_4,
	"ScalarType": TypeToken.SCALAR_TYPE,
	"std::string": TypeToken.STRING,
	"Type": TypeToken.TENSOR_TYPE,
	"SparseTensorRef": TypeToken.SPARSE_TENSOR_REF,
	"void": TypeToken.VOID,
	"void*": TypeToken.POINTER,
}

# Only meaningful as return types; an argument can never be `void`.
_RETURN_ONLY_TAGS = frozenset({"void", "void*"})


def resolve_type(tag: str) -> TypeToken:
	"""Map a source type tag to its TypeToken or raise UnsupportedType."""
	token = _SOURCE_TAGS.get(tag)
	if token is None:
		raise UnsupportedType(f"invalid type '{tag}'", tag=tag)
	return token


def resolve_argument_type(tag: str) -> TypeToken:
	"""Like `resolve_type`, but rejects tags that only make sense as returns."""
	if tag in _RETURN_ONLY_TAGS:
		raise UnsupportedType(f"invalid argument type '{tag}'", tag=tag)
	return resolve_type(tag)


def tuple_spelling(fields: list[tuple[str, TypeToken]]) -> str:
	"""Spell a named tuple type, e.g. `tuple[self: Tensor, other: Tensor]`."""
	inner = ", ".join(f"{name}: {token.spelling}" for name, token in fields)
	return f"tuple[{inner}]"


__all__ = ["TypeToken", "resolve_type", "resolve_argument_type", "tuple_spelling"]
