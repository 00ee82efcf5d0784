"""
Quote-Aware Shell Scanner for ReviewGuard.

A plain character blacklist rejects legitimate commands such as
``git commit -m "a && b"``. These helpers walk the command once, tracking
quoting the way a POSIX shell does, so only structural metacharacters
are treated as operators.
"""

# Operators that are inert inside single or double quotes
MULTI_CHAR_OPERATORS = ("&&", "||", "$(")
SINGLE_CHAR_OPERATORS = frozenset(";|<>&`\n\r")

# Still expanded by the shell inside double quotes
DOUBLE_QUOTED_SUBSTITUTIONS = ("$(", "`")


def has_shell_operators(command: str) -> bool:
    """
    Detect shell control operators outside of quotes.

    A backslash outside single quotes consumes the next character
    verbatim. Inside single quotes nothing is special. Inside double
    quotes only command substitution is live.

    Args:
        command: Raw command string

    Returns:
        True if the command chains, pipes, redirects, backgrounds or
        substitutes anything
    """
    in_single = False
    in_double = False
    i = 0

    while i < len(command):
        ch = command[i]

        if in_single:
            if ch == "'":
                in_single = False
            i += 1
            continue

        if ch == "\\":
            i += 2
            continue

        if in_double:
            if ch == '"':
                in_double = False
            elif command.startswith(DOUBLE_QUOTED_SUBSTITUTIONS, i):
                return True
            i += 1
            continue

        if ch == "'":
            in_single = True
        elif ch == '"':
            in_double = True
        elif command.startswith(MULTI_CHAR_OPERATORS, i):
            return True
        elif ch in SINGLE_CHAR_OPERATORS:
            return True

        i += 1

    return False


def split_args(command: str) -> list[str]:
    """
    Split a command into shell-like arguments.

    Whitespace outside quotes separates tokens, quote characters are
    consumed, and backslash-escaped characters are copied literally.
    Empty quoted strings do not produce a token.

    Args:
        command: Raw command string

    Returns:
        Ordered list of tokens
    """
    tokens = []
    current = []
    in_single = False
    in_double = False
    i = 0

    while i < len(command):
        ch = command[i]

        if in_single:
            if ch == "'":
                in_single = False
            else:
                current.append(ch)
            i += 1
            continue

        if ch == "\\":
            if i + 1 < len(command):
                current.append(command[i + 1])
            i += 2
            continue

        if in_double:
            if ch == '"':
                in_double = False
            else:
                current.append(ch)
        elif ch == "'":
            in_single = True
        elif ch == '"':
            in_double = True
        elif ch.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)

        i += 1

    if current:
        tokens.append("".join(current))

    return tokens
