from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

import numpy as np
from loguru import logger

MathFunction = Callable[[float], float]


class MathFunctionInfo(NamedTuple):
    """Descriptive metadata for a named math function."""

    key: str
    label: str
    description: str = ""
    example: str = ""
    category: str = ""
    function_type: str = ""
    parameters: tuple = ()


class MathFunctionMapper:
    """
    Bidirectional map between display names and math function callables.

    Each mapper is an independent, caller-owned instance; there is no shared
    module-level registry. Optional ``MathFunctionInfo`` metadata can be
    attached per name.
    """

    def __init__(self):
        self._functions: Dict[str, MathFunction] = {}
        self._names: Dict[MathFunction, str] = {}
        self._info: Dict[str, MathFunctionInfo] = {}

    def add_mapping(
        self,
        name: str,
        function: MathFunction,
        info: Optional[MathFunctionInfo] = None,
    ) -> None:
        """
        Map ``name`` to ``function``, replacing any previous mapping for either.

        Parameters
        ----------
        name : str
            Display name.
        function : MathFunction
            Callable taking and returning a float.
        info : Optional[MathFunctionInfo], default=None
            Descriptive metadata.
        """
        if not callable(function):
            raise ValueError(f"Function for '{name}' must be callable, got {function!r}")

        if name in self._functions:
            self._names.pop(self._functions[name], None)
            self._info.pop(name, None)
        previous_name = self._names.get(function)
        if previous_name is not None and previous_name != name:
            logger.debug(f"Function re-mapped from '{previous_name}' to '{name}'")
            self.remove_function(previous_name)

        self._functions[name] = function
        self._names[function] = name
        if info is not None:
            self._info[name] = info

    def get_function(self, name: str) -> Optional[MathFunction]:
        return self._functions.get(name)

    def get_name(self, function: MathFunction) -> Optional[str]:
        return self._names.get(function)

    def get_info(self, name: str) -> Optional[MathFunctionInfo]:
        return self._info.get(name)

    def get_by_key(self, key: str) -> Optional[MathFunction]:
        """Look up a function by the ``key`` field of its metadata."""
        for name, info in self._info.items():
            if info.key == key:
                return self._functions.get(name)
        return None

    def names(self) -> List[str]:
        """All display names, sorted alphabetically ignoring case."""
        return sorted(self._functions, key=str.casefold)

    def functions(self) -> List[MathFunction]:
        return list(self._functions.values())

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def remove_function(self, name: str) -> bool:
        """Remove a mapping. Returns False if ``name`` was not mapped."""
        function = self._functions.pop(name, None)
        if function is None:
            return False
        self._names.pop(function, None)
        self._info.pop(name, None)
        return True

    def clear(self) -> None:
        self._functions.clear()
        self._names.clear()
        self._info.clear()

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Debug view: name -> function, its type name and metadata."""
        return {
            name: {
                "function": function,
                "type": getattr(function, "__name__", type(function).__name__),
                "info": self._info.get(name),
            }
            for name, function in self._functions.items()
        }

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Dict[str, Any]],
    ) -> "MathFunctionMapper":
        """
        Build a mapper from ``{"name", "function", "info"}`` dictionaries.

        Parameters
        ----------
        entries : Iterable[Dict[str, Any]]
            Each entry needs ``name`` and ``function``; ``info`` is optional.

        Returns
        -------
        MathFunctionMapper
            A new mapper.
        """
        mapper = cls()
        for entry in entries:
            mapper.add_mapping(entry["name"], entry["function"], entry.get("info"))
        return mapper


def _identity(x: float) -> float:
    return x


def _zero(x: float) -> float:
    return 0.0


def _unit(x: float) -> float:
    return 1.0


def _square(x: float) -> float:
    return x * x


_DEFAULT_FUNCTIONS = [
    (
        _square,
        MathFunctionInfo(
            "sqr", "Square function", "y = x^2", "f(x) = x^2", "algebraic", "SqrFunction"
        ),
    ),
    (
        _identity,
        MathFunctionInfo(
            "identity", "Identity function", "y = x", "f(x) = x", "algebraic", "IdentityFunction"
        ),
    ),
    (
        _zero,
        MathFunctionInfo(
            "zero", "Zero function", "y = 0", "f(x) = 0", "constant", "ZeroFunction"
        ),
    ),
    (
        _unit,
        MathFunctionInfo(
            "unit", "Unit function", "y = 1", "f(x) = 1", "constant", "UnitFunction"
        ),
    ),
    (
        np.sin,
        MathFunctionInfo(
            "sin", "Sine", "Trigonometric sine", "f(x) = sin(x)", "trigonometric", "SinFunction"
        ),
    ),
    (
        np.cos,
        MathFunctionInfo(
            "cos", "Cosine", "Trigonometric cosine", "f(x) = cos(x)", "trigonometric", "CosFunction"
        ),
    ),
    (
        np.exp,
        MathFunctionInfo(
            "exp", "Exponent", "Exponential function", "f(x) = e^x", "exponential", "ExpFunction"
        ),
    ),
]


def create_default_mapper() -> MathFunctionMapper:
    """
    Create a new mapper populated with the built-in math functions.

    Returns
    -------
    MathFunctionMapper
        A fresh instance owned by the caller.
    """
    mapper = MathFunctionMapper()
    for function, info in _DEFAULT_FUNCTIONS:
        mapper.add_mapping(info.label, function, info)
    logger.debug(f"Default math function mapper created with {len(mapper)} functions")
    return mapper
