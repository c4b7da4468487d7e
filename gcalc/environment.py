from typing import Dict, Iterable, Optional, Tuple, Union

from gcalc.builtin_function import BuiltinFunction, UserFunction
from gcalc.errors import ArityError, UndefinedFunctionError

Callable = Union[BuiltinFunction, UserFunction]
Key = Tuple[str, int]


class Environment:
    """Session registry of callable functions keyed by (name, arity).

    User definitions live in `functions` and are consulted before the
    built-ins, so a definition may shadow a built-in of the same arity.
    Registering an existing (name, arity) overwrites that slot.
    """
    def __init__(self, builtins: Optional[Iterable[BuiltinFunction]] = None):
        self.functions: Dict[Key, UserFunction] = {}
        self.builtins: Dict[Key, BuiltinFunction] = {}
        for builtin in builtins or ():
            self.builtins[(builtin.name, builtin.arity)] = builtin

    def register(self, function: UserFunction) -> bool:
        """Insert or overwrite a user definition; returns True if one was replaced.

        Registering a definition equal to the current one is a no-op.
        """
        key = (function.name, function.arity)
        previous = self.functions.get(key)
        if previous is not None:
            if previous == function:
                return False
            # A changed body may refer to functions defined after the
            # original, so it moves to the end of the replay order.
            del self.functions[key]
        self.functions[key] = function
        return previous is not None

    def get(self, name: str, arity: int) -> Optional[Callable]:
        key = (name, arity)
        if key in self.functions:
            return self.functions[key]
        return self.builtins.get(key)

    def arities(self, name: str) -> Tuple[int, ...]:
        found = {a for n, a in self.functions if n == name}
        found.update(a for n, a in self.builtins if n == name)
        return tuple(sorted(found))

    def lookup(self, name: str, arity: int, offset: Optional[int] = None) -> Callable:
        func = self.get(name, arity)
        if func is not None:
            return func
        known = self.arities(name)
        if known:
            expected = ' or '.join(str(a) for a in known)
            raise ArityError(f"Expected {expected} arguments but got {arity} for '{name}'", offset)
        raise UndefinedFunctionError(name, arity, offset)

    def snapshot(self) -> Tuple[UserFunction, ...]:
        """Registered user definitions in registration order."""
        return tuple(self.functions.values())
