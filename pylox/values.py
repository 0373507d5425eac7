"""Runtime values for the Lox interpreter.

Lox values map onto Python objects as follows:

* `nil` is None, booleans are `bool`, numbers are always `float` and
  strings are `str`.
* Callables are instances of `LoxCallable`: user functions
  (`LoxFunction`), methods bound to an instance (`BoundMethod`),
  anonymous functions (`LoxLambda`) and classes (`LoxClass`).
* Objects created by calling a class are `LoxInstance`s.

The helpers at the bottom implement the language's truthiness, equality
and stringification rules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .ast import Function, FunctionKind, Lambda
from .environment import Environment
from .errors import LoxRuntimeError, ReturnSignal
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable:
    """Anything that can appear before a call's parentheses."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: List[Any]) -> Any:
        raise NotImplementedError


class LoxFunction(LoxCallable):
    """A function or method declaration closed over its defining scope."""

    def __init__(self, declaration: Function, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    @property
    def is_getter(self) -> bool:
        return self.declaration.kind == FunctionKind.GETTER

    def bind(self, instance: LoxInstance) -> BoundMethod:
        # `this` always occupies slot 0 of the scope between the method and its closure
        environment = Environment(self.closure)
        environment.define(instance)
        return BoundMethod(self.declaration, environment, self.is_initializer, instance)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for argument in arguments:
            environment.define(argument)

        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as signal:
            if self.is_initializer:
                return self.closure.slots[0]
            return signal.value

        if self.is_initializer:
            return self.closure.slots[0]
        return None

    def __str__(self) -> str:
        return f"<fn {self.name}>"


class BoundMethod(LoxFunction):
    """A method taken from an instance, with `this` fixed to that instance."""

    def __init__(self, declaration: Function, closure: Environment, is_initializer: bool, receiver: LoxInstance):
        super().__init__(declaration, closure, is_initializer)
        self.receiver = receiver


class LoxLambda(LoxCallable):
    def __init__(self, declaration: Lambda, closure: Environment):
        self.declaration = declaration
        self.closure = closure

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for argument in arguments:
            environment.define(argument)

        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as signal:
            return signal.value
        return None

    def __str__(self) -> str:
        return "<fn lambda>"


class LoxClass(LoxCallable):
    """A class: constructor, method table and static method table.

    Instance methods and getters share `methods`; both are looked up
    through the superclass chain. Static methods are reached through the
    class object itself.
    """

    def __init__(self, name: str, superclass: Optional[LoxClass],
                 methods: Dict[str, LoxFunction], static_methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.static_methods = static_methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def find_static_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.static_methods:
                return klass.static_methods[name]
            klass = klass.superclass
        return None

    def get(self, name: Token) -> LoxFunction:
        method = self.find_static_method(name.lexeme)
        if method is None:
            raise LoxRuntimeError(name, f"Undefined static method '{name.lexeme}'.")
        return method

    def initializer(self) -> Optional[LoxFunction]:
        # a getter named `init` is not a constructor
        method = self.find_method('init')
        if method is not None and method.is_initializer:
            return method
        return None

    def arity(self) -> int:
        initializer = self.initializer()
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.initializer()
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return f"{self.name} class"


class LoxInstance:
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"


def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # keeps `true == 1` false, since bool is an int subclass in Python
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: Any) -> str:
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        text = repr(value)
        if text.endswith('.0'):
            text = text[:-2]
        return text
    return str(value)
