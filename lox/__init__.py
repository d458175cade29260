"""
Lox: scanner, parser, resolver and tree-walking interpreter.
"""
from lox.lox_runtime import ExecutionResult, Natives, ScriptRunner

__all__ = ["ExecutionResult", "Natives", "ScriptRunner"]
