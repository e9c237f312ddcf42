"""Filter DSL operator tokens."""

OP_EQ = "="
OP_NE = "!="
OP_GT = ">"
OP_LT = "<"
OP_GE = ">="
OP_LE = "<="
OP_LIKE = "like"
OP_NOT_LIKE = "not like"

# Longest match first: ">=" must be tried before ">", "not like" before "like"
CLAUSE_OPERATORS: tuple[str, ...] = (
    OP_NE,
    OP_NOT_LIKE,
    OP_GE,
    OP_LE,
    OP_GT,
    OP_LT,
    OP_EQ,
    OP_LIKE,
)

# Operators allowed on fields that only support equality and pattern matching
STRING_OPERATORS = frozenset({OP_EQ, OP_NE, OP_LIKE, OP_NOT_LIKE})

# Operators allowed on ordered (numeric) fields
ORDERED_OPERATORS = frozenset({OP_EQ, OP_NE, OP_GT, OP_LT, OP_GE, OP_LE})

# Boolean connectives recognised by the clause splitter
LOGICAL_OR = "or"
LOGICAL_AND = "and"
