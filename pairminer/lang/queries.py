"""Structural queries for each supported grammar.

Call queries capture the called name as ``function`` (plain call) or
``function.method`` (attribute/member call). Doc queries capture the leading
comment(s) as ``comment``, the function name as ``name`` and the whole
definition as ``func_src``. Body queries capture ``name`` and ``func_body``.
"""

from __future__ import annotations

from dataclasses import dataclass

from pairminer.errors import UnknownLanguageError

CALL_LABELS = frozenset({"function", "function.method"})
DOC_LABELS = frozenset({"name", "comment", "func_src"})
BODY_LABELS = frozenset({"name", "func_body"})


@dataclass(frozen=True)
class QuerySet:
    call: str
    doc: str
    body: str


PYTHON_CALL = """
(call
  function: (attribute attribute: (identifier) @function.method))
(call
  function: (identifier) @function)
"""

PYTHON_DOC = """
(function_definition
  name: (identifier) @name
  body: (block
    .
    (expression_statement (string) @comment))) @func_src
"""

PYTHON_BODY = """
(function_definition
  name: (identifier) @name
  body: (block) @func_body)
"""

JAVASCRIPT_CALL = """
(call_expression
  function: (identifier) @function)
(call_expression
  function: (member_expression
    property: (property_identifier) @function.method))
"""

JAVASCRIPT_DOC = """
(
  (comment)+ @comment
  .
  (function_declaration
    name: (identifier) @name) @func_src
)
(
  (comment)+ @comment
  .
  (method_definition
    name: (property_identifier) @name) @func_src
)
"""

JAVASCRIPT_BODY = """
(function_declaration
  name: (identifier) @name
  body: (statement_block) @func_body)
(method_definition
  name: (property_identifier) @name
  body: (statement_block) @func_body)
"""

JAVA_CALL = """
(method_declaration
  name: (identifier) @function.method)
(method_invocation
  name: (identifier) @function.method)
"""

JAVA_DOC = """
(
  (block_comment)+ @comment
  .
  (method_declaration
    name: (identifier) @name) @func_src
)
"""

JAVA_BODY = """
(method_declaration
  name: (identifier) @name
  body: (block) @func_body)
"""

GO_CALL = """
(call_expression
  function: (identifier) @function)
(call_expression
  function: (selector_expression
    field: (field_identifier) @function.method))
"""

GO_DOC = """
(
  (comment)+ @comment
  .
  (function_declaration
    name: (identifier) @name) @func_src
)
(
  (comment)+ @comment
  .
  (method_declaration
    name: (field_identifier) @name) @func_src
)
"""

GO_BODY = """
(function_declaration
  name: (identifier) @name
  body: (block) @func_body)
(method_declaration
  name: (field_identifier) @name
  body: (block) @func_body)
"""

RUBY_CALL = """
(call
  method: [(identifier) (constant)] @function.method)
"""

RUBY_DOC = """
(
  (comment)+ @comment
  .
  (method
    name: (identifier) @name) @func_src
)
"""

RUBY_BODY = """
(method
  name: (identifier) @name) @func_body
"""

PHP_CALL = """
(member_call_expression
  name: (name) @function.method)
(function_call_expression
  function: (qualified_name (name)) @function)
(function_call_expression
  function: (name) @function)
"""

PHP_DOC = """
(
  (comment)+ @comment
  .
  (function_definition
    name: (name) @name) @func_src
)
(
  (comment)+ @comment
  .
  (method_declaration
    name: (name) @name) @func_src
)
"""

PHP_BODY = """
(function_definition
  name: (name) @name
  body: (compound_statement) @func_body)
(method_declaration
  name: (name) @name
  body: (compound_statement) @func_body)
"""

SOLIDITY_CALL = """
(call_expression
  function: (expression (identifier) @function))
(call_expression
  function: (expression
    (member_expression
      property: (identifier) @function.method)))
"""

SOLIDITY_DOC = """
(
  (comment)+ @comment
  .
  (function_definition
    name: (identifier) @name
    body: (function_body)) @func_src
)
"""

SOLIDITY_BODY = """
(function_definition
  name: (identifier) @name
  body: (function_body) @func_body)
"""

LANGUAGE_QUERIES: dict[str, QuerySet] = {
    "python": QuerySet(call=PYTHON_CALL, doc=PYTHON_DOC, body=PYTHON_BODY),
    "javascript": QuerySet(call=JAVASCRIPT_CALL, doc=JAVASCRIPT_DOC, body=JAVASCRIPT_BODY),
    "java": QuerySet(call=JAVA_CALL, doc=JAVA_DOC, body=JAVA_BODY),
    "go": QuerySet(call=GO_CALL, doc=GO_DOC, body=GO_BODY),
    "ruby": QuerySet(call=RUBY_CALL, doc=RUBY_DOC, body=RUBY_BODY),
    "php": QuerySet(call=PHP_CALL, doc=PHP_DOC, body=PHP_BODY),
    "solidity": QuerySet(call=SOLIDITY_CALL, doc=SOLIDITY_DOC, body=SOLIDITY_BODY),
}


def resolve(language: str) -> tuple[str, str]:
    """Return the ``(call_query, doc_query)`` sources for a language tag."""
    queries = LANGUAGE_QUERIES.get(language)
    if queries is None:
        raise UnknownLanguageError(language, sorted(LANGUAGE_QUERIES))
    return queries.call, queries.doc
