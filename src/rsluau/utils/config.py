"""
Configuration constants to replace magic numbers throughout rsluau
"""

# Display and formatting constants
ERROR_POINTER_CHAR = "^"

# Source file constants
DEFAULT_SOURCE_FILE = "main.rs"
DEFAULT_FILE_ENCODING = "utf-8"

# Emission layout
INDENT_STRING = "    "  # Four spaces per nesting level (Luau style guides)

# Generated names
TEMP_PREFIX = "_tmp"     # _tmp1, _tmp2, ... for hoisted values
RENAME_SEPARATOR = "_"   # x -> x_1 when a declaration shadows a live binding
ENTRY_POINT_NAME = "main"

# Runtime marker raised by the default branch of a non-exhaustive match
UNHANDLED_MATCH_MARKER = "UnhandledMatchError"

# Macros lowered to the host print function
PRINT_MACROS = frozenset({"println", "print"})
HOST_PRINT_FUNCTION = "print"
FORMAT_MACRO = "format"  # format!(...) lowers to string.format
FORMAT_PLACEHOLDER = "{}"

# Luau reserved words; a source identifier spelled like one is renamed
LUAU_RESERVED_WORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for",
    "function", "if", "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while",
})

# Host globals the emitted code calls; a source name spelled like one is renamed
LUAU_HOST_GLOBALS = frozenset({"error", "print", "tostring", "string", "math"})

# Deepest expression/block nesting the parser accepts
MAX_NESTING_DEPTH = 64
