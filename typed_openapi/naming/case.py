"""Identifier case conversion.

Both functions are pure and total: empty or all-separator identifiers come
back unchanged, and leading/trailing separator runs are kept verbatim.
"""


def to_snake_case(identifier: str, separator: str = "_") -> str:
    """
    Convert a camelCase / PascalCase identifier to snake_case

    An uppercase run followed by a lowercase letter is split before the last
    uppercase letter of the run, so "URLSession" becomes "url_session".

    Args:
        identifier: Identifier to convert
        separator: Word separator to insert

    Returns:
        Lowercased identifier with separators between words
    """
    if not identifier:
        return identifier

    result = []
    # Whether an uppercase character starts a new word
    separate_on_upper = True
    length = len(identifier)

    for index, char in enumerate(identifier):
        if char.isupper():
            if separate_on_upper and result:
                result.append(separator)
            # "L" in "URLSession": next is upper and next-next is lower
            separate_on_upper = (
                index + 2 < length
                and identifier[index + 1].isupper()
                and identifier[index + 2].islower()
            )
        else:
            separate_on_upper = char != separator
        result.append(char.lower())

    return "".join(result)


def to_camel_case(identifier: str, separator: str = "_") -> str:
    """
    Convert a snake_case identifier to camelCase

    Args:
        identifier: Identifier to convert
        separator: Word separator to split on

    Returns:
        camelCase identifier, with leading/trailing separators preserved
    """
    stripped = identifier.strip(separator)
    if not stripped:
        return identifier

    start = len(identifier) - len(identifier.lstrip(separator))
    leading = identifier[:start]
    trailing = identifier[start + len(stripped):]

    words = [word for word in stripped.split(separator) if word]
    if len(words) < 2:
        return identifier

    head = words[0][0].lower() + words[0][1:]
    tail = "".join(word[0].upper() + word[1:] for word in words[1:])
    return f"{leading}{head}{tail}{trailing}"
