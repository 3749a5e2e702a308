"""
    Implements a restricted parser and formatter for the Python literals found in container headers.

    Only strings, integers, booleans, None, tuples, lists and dictionaries are understood.
    Nothing is ever evaluated.

    This file is part of npyz.

    npyz is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    npyz is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with npyz.  If not, see <https://www.gnu.org/licenses/>.
"""
from typing import Any, List, Tuple
import sys

from ..exceptions import MalformedHeader

"""
    Bare words and the value they stand for.
"""
keywords = {
    'True': True,
    'False': False,
    'None': None,
}

"""
    Single character escape sequences inside string literals.
"""
escapes = {
    '\\': '\\',
    "'": "'",
    '"': '"',
    'n': '\n',
    'r': '\r',
    't': '\t',
    '0': '\0',
}

"""
    Hexadecimal escape sequences and the number of digits they take.
"""
hex_escapes = {
    'x': 2,
    'u': 4,
    'U': 8,
}

"""
    Deepest nesting of tuples, lists and dictionaries accepted.
"""
MAX_DEPTH = 32
"""
    Longest integer literal accepted, in digits.
"""
MAX_DIGITS = 64

_WHITESPACE = ' \t\r\n'
_DIGITS = '0123456789'


class _Parser:
    """
    Recursive descent parser over a literal text.
    """
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0

    def fail(self, message: str):
        raise MalformedHeader(f'{message} at position {self.pos} of header {self.text!r}.')

    def skip_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def peek(self) -> str:
        self.skip_whitespace()
        if self.pos >= len(self.text):
            return ''
        return self.text[self.pos]

    def expect(self, char: str):
        if self.peek() != char:
            self.fail(f'Expected "{char}"')
        self.pos += 1

    def parse(self) -> Any:
        value = self.parse_value()
        if self.peek() != '':
            self.fail('Unexpected trailing characters')
        return value

    def parse_value(self) -> Any:
        char = self.peek()

        if char == '':
            self.fail('Unexpected end of literal')
        if char in '\'"':
            return self.parse_string()
        if char in _DIGITS or char in '-+':
            return self.parse_integer()
        if char in '([{':
            return self.parse_container(char)
        if char.isalpha():
            return self.parse_keyword()

        self.fail(f'Unexpected character "{char}"')

    def parse_container(self, char: str) -> Any:
        if self.depth >= MAX_DEPTH:
            self.fail(f'Nesting deeper than {MAX_DEPTH} levels')

        self.depth += 1
        if char == '(':
            value = self.parse_tuple()
        elif char == '[':
            value = list(self.parse_sequence('[', ']')[0])
        else:
            value = self.parse_dict()
        self.depth -= 1

        return value

    def parse_keyword(self) -> Any:
        start = self.pos
        while self.pos < len(self.text) and (self.text[self.pos].isalnum() or self.text[self.pos] == '_'):
            self.pos += 1
        word = self.text[start:self.pos]

        if word not in keywords:
            self.pos = start
            self.fail(f'Unknown name "{word}"')

        return keywords[word]

    def parse_integer(self) -> int:
        start = self.pos
        if self.text[self.pos] in '-+':
            self.pos += 1
        digits_start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _DIGITS:
            self.pos += 1
        if self.pos == digits_start:
            self.fail('Expected digits')
        if self.pos - digits_start > MAX_DIGITS:
            self.fail(f'Integer longer than {MAX_DIGITS} digits')

        value = int(self.text[start:self.pos])

        # python 2 long integers
        if self.pos < len(self.text) and self.text[self.pos] in 'lL':
            self.pos += 1

        return value

    def parse_string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        chars: List[str] = []

        while True:
            if self.pos >= len(self.text):
                self.fail('Unterminated string')
            char = self.text[self.pos]
            self.pos += 1

            if char == quote:
                return ''.join(chars)
            if char == '\n':
                self.fail('Newline in string')
            if char != '\\':
                chars.append(char)
                continue

            if self.pos >= len(self.text):
                self.fail('Unterminated escape sequence')
            escape = self.text[self.pos]
            self.pos += 1

            if escape in escapes:
                chars.append(escapes[escape])
            elif escape in hex_escapes:
                digits = self.text[self.pos:self.pos + hex_escapes[escape]]
                if len(digits) != hex_escapes[escape] or any(c not in '0123456789abcdefABCDEF' for c in digits):
                    self.fail('Invalid hexadecimal escape sequence')
                code_point = int(digits, 16)
                if code_point > sys.maxunicode:
                    self.fail('Escape sequence out of the unicode range')
                chars.append(chr(code_point))
                self.pos += len(digits)
            else:
                self.fail(f'Invalid escape sequence "\\{escape}"')

    def parse_sequence(self, opening: str, closing: str) -> Tuple[List[Any], bool]:
        """
        Parse comma separated values between delimiters.
        :return: the values and whether a comma was seen
        """
        self.expect(opening)
        values = []
        comma = False

        while self.peek() != closing:
            values.append(self.parse_value())
            if self.peek() == ',':
                self.pos += 1
                comma = True
            elif self.peek() != closing:
                self.fail(f'Expected "," or "{closing}"')

        self.pos += 1
        return values, comma

    def parse_tuple(self) -> Any:
        values, comma = self.parse_sequence('(', ')')

        # parenthesized expression, not a tuple
        if len(values) == 1 and not comma:
            return values[0]

        return tuple(values)

    def parse_dict(self) -> dict:
        self.expect('{')
        dictionary = dict()

        while self.peek() != '}':
            key = self.parse_value()
            if isinstance(key, (list, dict)):
                self.fail('Unhashable dictionary key')
            self.expect(':')
            value = self.parse_value()
            try:
                dictionary[key] = value
            except TypeError:
                self.fail('Unhashable dictionary key')

            if self.peek() == ',':
                self.pos += 1
            elif self.peek() != '}':
                self.fail('Expected "," or "}"')

        self.pos += 1
        return dictionary


def parse_literal(text: str) -> Any:
    """
    Parse a literal text.
    :param text: literal as a string
    :return: the corresponding python value
    """
    return _Parser(text).parse()


def format_literal(value: Any) -> str:
    """
    Format a python value as a literal text.
    Tuples always carry a trailing comma so that one-element tuples stay tuples.
    :param value: value made of strings, integers, booleans, None, tuples, lists and dictionaries
    :return: literal text
    """
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, str):
        return repr(value)
    if isinstance(value, tuple):
        if len(value) == 0:
            return '()'
        return '(' + ''.join(f'{format_literal(v)}, ' for v in value)[:-1] + ')'
    if isinstance(value, list):
        return '[' + ', '.join(format_literal(v) for v in value) + ']'
    if isinstance(value, dict):
        return '{' + ', '.join(f'{format_literal(k)}: {format_literal(v)}' for k, v in value.items()) + '}'

    raise TypeError(f'Cannot format value of type {type(value)} as a literal.')
