"""
Defines the runtime data types the Lox interpreter works with.

Environments form a chain of frames toward the globals. Callables
(functions, classes and natives) and class instances are the non-primitive
runtime values; nil, booleans, numbers and strings are represented by
Python's None, bool, float and str.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from lox.lox_errors import LoxRuntimeError
from lox.lox_tokens import Token

if TYPE_CHECKING:
    from lox.lox_ast import Function
    from lox.lox_interpreter import Interpreter


class ReturnSignal(Exception):
    """Carries a `return` value up to the enclosing call. Not an error."""
    def __init__(self, value: Any):
        super().__init__()
        self.value = value


# =================================================================
# Environments
# =================================================================

class Environment:
    """One frame of variable bindings plus a link to the enclosing frame.

    Frames only ever point outward, toward the globals. A closure keeps the
    frame it was created in alive; the frame itself never refers back down
    to its children.
    """
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.bindings: Dict[str, Any] = {}
        self.enclosing = enclosing

    def define(self, name: str, value: Any):
        """Bind `name` in this frame, replacing any existing binding here."""
        self.bindings[name] = value

    def get(self, name: Token) -> Any:
        owner = self.find_owner(name.lexeme)
        if owner is None:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        return owner.bindings[name.lexeme]

    def assign(self, name: Token, value: Any):
        owner = self.find_owner(name.lexeme)
        if owner is None:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        owner.bindings[name.lexeme] = value

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the nearest frame in the chain (self → enclosing) that binds `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.enclosing
        return None

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        return self.ancestor(distance).bindings[name]

    def assign_at(self, distance: int, name: Token, value: Any):
        self.ancestor(distance).bindings[name.lexeme] = value

    def __contains__(self, name: str) -> bool:
        return self.find_owner(name) is not None

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", enclosing=#{id(self.enclosing)}" if self.enclosing else ""
        return f"<Environment bindings=[{keys}]{parent_id}>"


# =================================================================
# Callables
# =================================================================

class LoxCallable(ABC):
    """Abstract base class for every value that can be called from Lox."""

    @abstractmethod
    def arity(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        raise NotImplementedError


class LoxFunction(LoxCallable):
    """A function or method declared in Lox.

    This is a closure, bundling the declaration with the environment that
    was active when it was defined.
    """
    def __init__(self, declaration: 'Function', closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        """Returns a copy of this method whose closure defines `this` as `instance`."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as signal:
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            return signal.value

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return None

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


class NativeFunction(LoxCallable):
    """A host-provided function exposed to Lox with a fixed arity."""
    def __init__(self, name: str, func: Callable[..., Any], arity: int):
        self.name = name
        self.func = func
        self._arity = arity

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        return self.func(*arguments)

    def __repr__(self) -> str:
        return "<native fn>"


class LoxClass(LoxCallable):
    """A class declared in Lox. Calling it constructs an instance."""
    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Looks `name` up on this class, then along the superclass chain."""
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __repr__(self) -> str:
        return self.name


class LoxInstance:
    """An instance of a LoxClass: a bag of fields plus its class for method lookup."""
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        # Fields shadow methods.
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __repr__(self) -> str:
        return f"{self.klass.name} instance"
