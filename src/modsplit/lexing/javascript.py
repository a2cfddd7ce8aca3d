"""Token source for JavaScript modules.

The scanner is deliberately small: it recognizes enough of the ECMAScript
lexical grammar to keep strings, comments, regular expressions and template
literals from leaking bracket or keyword lexemes into the stream. Template
substitutions (``${ ... }``) push a ``SUBSTITUTION`` state; the consumer
decides which ``}`` closes the substitution and calls :meth:`pop_state`, at
which point scanning resumes inside the template text.
"""

from __future__ import annotations

import re

from .tokens import TRIVIA_TYPES, LexError, Location, Token

__all__ = [
    "INITIAL_STATE",
    "SUBSTITUTION_STATE",
    "JAVASCRIPT_KEYWORDS",
    "JAVASCRIPT_TOKEN_TYPES",
    "JavaScriptTokenSource",
]

INITIAL_STATE = "INITIAL"
SUBSTITUTION_STATE = "SUBSTITUTION"

JAVASCRIPT_TOKEN_TYPES: tuple[str, ...] = (
    "whitespace",
    "lineTerminator",
    "comment",
    "keyword",
    "identifier",
    "punctuator",
    "numericLiteral",
    "stringLiteral",
    "templateLiteral",
    "regexpLiteral",
)
_TYPE_IDS = {name: index for index, name in enumerate(JAVASCRIPT_TOKEN_TYPES)}

# ``from``, ``as`` and ``of`` are contextual in the grammar but are reported as
# keywords so statement classification can match on the token type alone.
JAVASCRIPT_KEYWORDS: frozenset[str] = frozenset(
    {
        "as", "async", "await", "break", "case", "catch", "class", "const",
        "continue", "debugger", "default", "delete", "do", "else", "export",
        "extends", "false", "finally", "for", "from", "function", "if",
        "import", "in", "instanceof", "let", "new", "null", "of", "return",
        "static", "super", "switch", "this", "throw", "true", "try",
        "typeof", "var", "void", "while", "with", "yield",
    }
)

# Keywords after which a ``/`` starts a regular expression literal.
_REGEX_PREFIX_KEYWORDS = frozenset(
    {
        "await", "case", "delete", "do", "else", "in", "instanceof", "new",
        "of", "return", "throw", "typeof", "void", "yield",
    }
)

_PUNCTUATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=",
    "??=", "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
    "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-", "*", "/",
    "%", "&", "|", "^", "!", "~", "?", ":", "=", ".", "@",
)

_TOKEN_SPECIFICATION = [
    ("lineTerminator", r"\r\n|[\n\r\u2028\u2029]"),
    ("whitespace", r"[ \t\f\v\u00a0\ufeff]+"),
    ("comment", r"//[^\n\r\u2028\u2029]*|/\*[\s\S]*?\*/"),
    ("stringLiteral", r"'(?:[^'\\\n\r]|\\[\s\S])*'|\"(?:[^\"\\\n\r]|\\[\s\S])*\""),
    (
        "numericLiteral",
        r"0[xX][0-9a-fA-F_]+n?|0[bB][01_]+n?|0[oO][0-7_]+n?"
        r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?",
    ),
    ("word", r"#?[A-Za-z_$\u0080-\uffff][\w$\u0080-\uffff]*"),
    ("punctuator", "|".join(re.escape(item) for item in _PUNCTUATORS)),
]
_TOKEN_RE = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPECIFICATION)
)
_REGEX_RE = re.compile(
    r"/(?![*/])(?:[^/\\\[\n\r]|\\.|\[(?:[^\]\\\n\r]|\\.)*\])+/[A-Za-z]*"
)
_TEMPLATE_BODY_RE = re.compile(r"(?:[^`\\$]|\\[\s\S]|\$(?!\{))*")
_LINE_BREAK_RE = re.compile(r"\r\n|[\n\r\u2028\u2029]")
_HASHBANG_RE = re.compile(r"#![^\n\r\u2028\u2029]*")
_PROPERTY_KEY_RE = re.compile(r"\s*:")


class JavaScriptTokenSource:
    """Pull-based JavaScript token source with template-literal states.

    Example:
        >>> source = JavaScriptTokenSource("let s = `a${b}c`;")
        >>> lexemes = []
        >>> while (tok := source.next_token()) is not None:
        ...     lexemes.append(tok.lexeme)
        ...     if tok.lexeme == "}" and source.state_depth:
        ...         source.pop_state()
        >>> lexemes[-5:]
        ['`a${', 'b', '}', 'c`', ';']
    """

    name = "javascript"
    token_types = JAVASCRIPT_TOKEN_TYPES

    def __init__(self, text: str, *, path: str | None = None) -> None:
        self.path = path
        self._text = text
        self._pos = 0
        self._byte_offset = 0
        self._line = 1
        self._column = 1
        self._states: list[str] = [INITIAL_STATE]
        self._resume_template = False
        self._last_significant: Token | None = None

    @property
    def state_depth(self) -> int:
        return len(self._states) - 1

    def current_state(self) -> str:
        return self._states[-1]

    def pop_state(self) -> None:
        """Leave the innermost substitution and resume its template text."""

        if len(self._states) == 1:
            raise LexError("no nested state to leave", location=self._location())
        popped = self._states.pop()
        if popped == SUBSTITUTION_STATE:
            self._resume_template = True

    def next_token(self) -> Token | None:
        if self._resume_template:
            self._resume_template = False
            return self._scan_template(self._pos)
        if self._pos >= len(self._text):
            return None

        char = self._text[self._pos]
        if self._pos == 0 and self._text.startswith("#!"):
            return self._emit("comment", _HASHBANG_RE.match(self._text).group())
        if self._text.startswith("/*", self._pos) and (
            self._text.find("*/", self._pos + 2) < 0
        ):
            raise LexError(
                "unterminated block comment", location=self._location()
            )
        if char == "`":
            return self._scan_template(self._pos + 1)
        if char == "/" and self._regex_allowed():
            match = _REGEX_RE.match(self._text, self._pos)
            if match is not None:
                return self._emit("regexpLiteral", match.group())

        match = _TOKEN_RE.match(self._text, self._pos)
        if match is None:
            raise self._error_at_cursor(char)
        kind = match.lastgroup or "punctuator"
        lexeme = match.group()
        if kind == "word":
            kind = self._classify_word(lexeme)
        return self._emit(kind, lexeme)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _scan_template(self, body_start: int) -> Token:
        match = _TEMPLATE_BODY_RE.match(self._text, body_start)
        end = match.end() if match is not None else body_start
        rest = self._text[end : end + 2]
        if rest.startswith("`"):
            return self._emit("templateLiteral", self._text[self._pos : end + 1])
        if rest == "${":
            token = self._emit(
                "templateLiteral", self._text[self._pos : end + 2]
            )
            self._states.append(SUBSTITUTION_STATE)
            return token
        raise LexError(
            "unterminated template literal", location=self._location()
        )

    def _classify_word(self, lexeme: str) -> str:
        previous = self._last_significant
        # Property names such as ``foo.default`` are never keywords.
        if previous is not None and previous.lexeme in {".", "?."}:
            return "identifier"
        if lexeme not in JAVASCRIPT_KEYWORDS:
            return "identifier"
        # Object keys: ``{ export: x, import: y }``. ``default:`` stays a
        # keyword for switch labels.
        if (
            lexeme != "default"
            and previous is not None
            and previous.lexeme in {"{", ","}
            and _PROPERTY_KEY_RE.match(self._text, self._pos + len(lexeme))
        ):
            return "identifier"
        return "keyword"

    def _regex_allowed(self) -> bool:
        previous = self._last_significant
        if previous is None:
            return True
        if previous.type == "punctuator":
            return previous.lexeme not in {")", "]", "}"}
        if previous.type == "keyword":
            return previous.lexeme in _REGEX_PREFIX_KEYWORDS
        if previous.type == "templateLiteral":
            return previous.lexeme.endswith("${")
        return False

    def _error_at_cursor(self, char: str) -> LexError:
        if char in {"'", '"'}:
            reason = "unterminated string literal"
        else:
            reason = f"unexpected character {char!r}"
        return LexError(reason, location=self._location())

    def _location(self) -> Location:
        return Location(
            line=self._line,
            column=self._column,
            offset=self._byte_offset,
            file=self.path,
        )

    def _emit(self, kind: str, lexeme: str) -> Token:
        byte_length = len(lexeme.encode("utf-8"))
        token = Token(
            lexeme=lexeme,
            type=kind,
            id=_TYPE_IDS[kind],
            location=self._location(),
            byte_length=byte_length,
        )
        self._advance(lexeme, byte_length)
        if kind not in TRIVIA_TYPES:
            self._last_significant = token
        return token

    def _advance(self, lexeme: str, byte_length: int) -> None:
        self._pos += len(lexeme)
        self._byte_offset += byte_length
        breaks = list(_LINE_BREAK_RE.finditer(lexeme))
        if breaks:
            self._line += len(breaks)
            self._column = len(lexeme) - breaks[-1].end() + 1
        else:
            self._column += len(lexeme)
