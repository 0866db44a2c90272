"""Schema and operation compilers for gschema."""

from .operations import CompiledOperations, OperationCompiler, compile_operation_files, write_operation_registries
from .schema_compiler import SchemaCompiler, compile_schema_files, write_descriptor_tables

__all__ = [
    "CompiledOperations",
    "OperationCompiler",
    "SchemaCompiler",
    "compile_operation_files",
    "compile_schema_files",
    "write_descriptor_tables",
    "write_operation_registries",
]
