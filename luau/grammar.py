"""
Luau Grammar Definition.

This module contains the Lark grammar for the Luau dialect handled by the
formatter and the compatibility rewriter. Rule names double as node kinds in
the syntax tree, so they follow the vocabulary the rest of the package
dispatches on (``local_var_stmt``, ``binexp``, ``ifexp``, ``var_stmt``...).

The grammar is meant to be used with ``keep_all_tokens=True``: keywords and
punctuation stay in the tree as leaves whose kind is their own text.
"""

luau_grammar = r"""
    chunk: _stmt* (return_stmt ";"?)?
    block: _stmt+ (return_stmt ";"?)?
         | return_stmt ";"?

    // Entry point for expressions embedded in interpolated strings
    exp_only: exp

    // --- Statements ---
    _stmt: local_var_stmt
         | local_function_stmt
         | function_stmt
         | assign_stmt
         | var_stmt
         | call_stmt
         | if_stmt
         | while_stmt
         | repeat_stmt
         | for_range_stmt
         | for_in_stmt
         | do_stmt
         | break_stmt
         | continue_stmt
         | ";"

    local_var_stmt: "local" binding ("," binding)* ("=" exp ("," exp)*)?
    local_function_stmt: "local" "function" NAME funcbody
    function_stmt: "function" funcname funcbody
    funcname: NAME ("." NAME)* (":" NAME)?
    funcbody: "(" paramlist? ")" (":" type)? block? "end"
    paramlist: binding ("," binding)* ("," "...")?
             | "..."
    binding: NAME (":" type)?

    assign_stmt: varlist "=" explist
    varlist: var ("," var)*
    explist: exp ("," exp)*

    // Compound assignment
    var_stmt: var ("+=" | "-=" | "*=" | "/=" | "//=" | "%=" | "^=" | "..=") exp

    call_stmt: prefixexp arglist
             | prefixexp ":" NAME arglist

    if_stmt: "if" exp "then" block? ("elseif" exp "then" block?)* ("else" block?)? "end"
    while_stmt: "while" exp "do" block? "end"
    repeat_stmt: "repeat" block? "until" exp
    for_range_stmt: "for" binding "=" exp "," exp ("," exp)? "do" block? "end"
    for_in_stmt: "for" binding ("," binding)* "in" explist "do" block? "end"
    do_stmt: "do" block? "end"
    return_stmt: "return" explist?
    break_stmt: "break"
    continue_stmt: "continue"

    // --- Expressions (lowest precedence first) ---
    ?exp: or_exp
        | or_t
    ifexp: "if" exp "then" exp ("elseif" exp "then" exp)* "else" exp

    // The else branch of an if-expression runs to the end of the expression,
    // so an if-expression may only be the last operand of a chain. The *_t
    // rules mirror the levels below for chains ending in one.
    ?or_t: and_t
         | or_exp "or" and_t -> binexp
    ?and_t: cmp_t
          | and_exp "and" cmp_t -> binexp
    ?cmp_t: concat_t
          | cmp_exp ("<" | ">" | "<=" | ">=" | "==" | "~=") concat_t -> binexp
    ?concat_t: add_t
             | add_exp ".." concat_t -> binexp
    ?add_t: mul_t
          | add_exp ("+" | "-") mul_t -> binexp
    ?mul_t: unary_t
          | mul_exp ("*" | "/" | "//" | "%") unary_t -> binexp
    ?unary_t: pow_t
            | ("not" | "#" | "-") unary_t -> unexp
    ?pow_t: ifexp
          | simple_exp "^" unary_t -> binexp

    ?or_exp: and_exp
           | or_exp "or" and_exp -> binexp
    ?and_exp: cmp_exp
            | and_exp "and" cmp_exp -> binexp
    ?cmp_exp: concat_exp
            | cmp_exp ("<" | ">" | "<=" | ">=" | "==" | "~=") concat_exp -> binexp
    ?concat_exp: add_exp
               | add_exp ".." concat_exp -> binexp
    ?add_exp: mul_exp
            | add_exp ("+" | "-") mul_exp -> binexp
    ?mul_exp: unary_exp
            | mul_exp ("*" | "/" | "//" | "%") unary_exp -> binexp
    ?unary_exp: pow_exp
              | ("not" | "#" | "-") unary_exp -> unexp
    ?pow_exp: simple_exp
            | simple_exp "^" unary_exp -> binexp

    ?simple_exp: NUMBER
               | STRING
               | LONG_STRING
               | INTERP_STRING
               | "nil"
               | "true"
               | "false"
               | "..."
               | function_exp
               | table
               | prefixexp

    function_exp: "function" funcbody

    ?prefixexp: var
              | call
              | paren_exp
    var: NAME
       | prefixexp "." NAME
       | prefixexp "[" exp "]"
    call: prefixexp arglist
        | prefixexp ":" NAME arglist
    paren_exp: "(" exp ")"
    arglist: "(" (exp ("," exp)*)? ")"
           | table
           | STRING
           | LONG_STRING

    table: "{" fieldlist? "}"
    fieldlist: field (("," | ";") field)* ("," | ";")?
    field: "[" exp "]" "=" exp
         | NAME "=" exp
         | exp

    // --- Type annotations ---
    type: _single_type ("|" _single_type)*
    _single_type: NAME ("." NAME)? type_args? "?"?
                | "nil"
                | "{" type "}" "?"?
    type_args: "<" type ("," type)* ">"

    // --- Terminals ---
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /0[xX][0-9a-fA-F_]+|0[bB][01_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?/
    STRING: /"(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'/
    LONG_STRING: /\[\[[\s\S]*?\]\]|\[=\[[\s\S]*?\]=\]|\[==\[[\s\S]*?\]==\]|\[===\[[\s\S]*?\]===\]/
    INTERP_STRING: /`(?:[^`\\]|\\[\s\S])*`/
    COMMENT: /--\[\[[\s\S]*?\]\]|--\[=\[[\s\S]*?\]=\]|--\[==\[[\s\S]*?\]==\]|--[^\n]*/

    %import common.WS
    %ignore WS
    %ignore COMMENT
"""
