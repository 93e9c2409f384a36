"""Identifier to path-token conversion.

Resource and operation names are written in CapWords (``UsersId``,
``PostPhoto``) and appear in URLs as separator-delimited lowercase
tokens (``users_id``, ``post_photo``).
"""

DEFAULT_SEPARATOR = "_"


def convert_name(identifier: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Convert a CapWords identifier to a lowercase path token.

    A separator is inserted before every ``A``-``Z`` character except the
    first one, then the whole result is lowercased::

        convert_name("PhotosId")        -> "photos_id"
        convert_name("Get")             -> "get"
        convert_name("ImageUrl", "-")   -> "image-url"

    Only the ASCII uppercase range triggers a separator.
    """
    parts: list[str] = []
    for index, char in enumerate(identifier):
        if index > 0 and "A" <= char <= "Z":
            parts.append(separator)
        parts.append(char)
    return "".join(parts).lower()
