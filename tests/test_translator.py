import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tuplec import (  # noqa: E402
    OUTPUT_PARAM_PREFIX,
    FunctionRegistry,
    TranslationResult,
    Translator,
    translate_source,
)

FRED = "%func static (int,int,char *) fred(double a);"


def _kinds(result):
    return [d.kind for d in result.diagnostics]


def test_fred_scenario_definition_return_and_call():
    src = "\n".join(
        [
            FRED,
            "{",
            '    %return (3,5,"hello");',
            "%end",
            "int main(void)",
            "{",
            "    %call (int x,int y,char *string) = fred(9.5);",
            "    return x;",
            "}",
        ]
    ) + "\n"

    result = translate_source(src)

    assert isinstance(result, TranslationResult)
    assert result.ok
    assert result.output == (
        "static int fred(double a, int *tuple_out_1, char **tuple_out_2)",
        "{",
        '    { *tuple_out_1 = 5; *tuple_out_2 = "hello"; return 3; } /* %return (3,5,"hello"); */',
        "}",
        "int main(void)",
        "{",
        "    int x; int y; char *string; x = fred(9.5, &y, &string);"
        " /* %call (int x,int y,char *string) = fred(9.5); */",
        "    return x;",
        "}",
    )
    assert result.text.endswith("}\n")
    assert len(result.output) == len(result.source)


@pytest.mark.parametrize("arity", [1, 2, 3, 5])
def test_definition_adds_one_output_parameter_per_extra_slot(arity):
    types = ", ".join(["int *"] * arity)
    result = translate_source(f"%func ({types}) f(int a);")
    header = result.output[0]

    assert header.startswith("int *f(int a")
    assert header.count("int **tuple_out_") == arity - 1


def test_definition_with_no_params_and_single_slot_emits_void():
    result = translate_source("%func (double) g(void) {\n%end\n")
    assert result.output == ("double g(void) {", "}")


def test_definition_keeps_indentation_and_open_brace():
    result = translate_source("  %func (int, int) pair() {")
    assert result.output == ("  int pair(int *tuple_out_1) {",)


@pytest.mark.parametrize("arity", [1, 2, 4])
def test_return_emits_n_minus_one_assignments_and_one_return(arity):
    types = ", ".join(["int"] * arity)
    values = ", ".join(str(i * 10) for i in range(arity))
    result = translate_source(f"%func ({types}) f();\n%return ({values});\n")

    statements, comment = result.output[1].split(" /* ")
    assert statements.count("*tuple_out_") == arity - 1
    assert statements.count("return ") == 1
    assert statements.startswith("{ ")
    assert statements.endswith("return 0; }")
    assert comment == f"%return ({values}); */"


@pytest.mark.parametrize("values", ["(1)", "(1, 2)", "(1, 2, 3, 4)"])
def test_return_with_wrong_count_fails_and_emits_nothing(values):
    src = f"{FRED}\n%return {values};\nint after;\n"
    result = translate_source(src)

    assert _kinds(result) == ["ReturnArityMismatch"]
    diag = result.diagnostics[0]
    assert diag.line_number == 2
    assert diag.source == f"%return {values};"
    assert diag.context == (f"fred defined on line 1: {FRED}",)
    assert len(result.output) == 1
    assert not result.completed


def test_return_outside_function():
    result = translate_source("%return (1);")
    assert _kinds(result) == ["ReturnOutsideFunction"]


def test_end_clears_the_active_function():
    src = "%func (int, int) f();\n%end\n%return (1, 2);\n"
    result = translate_source(src)

    assert _kinds(result) == ["ReturnOutsideFunction"]
    assert result.diagnostics[0].line_number == 3


def test_active_function_is_replaced_by_next_definition():
    src = "\n".join(
        [
            "%func (int, int) f();",
            "%func (int) g();",
            "%return (1);",
            "%return (1, 2);",
        ]
    )
    result = translate_source(src, fail_fast=False)

    assert _kinds(result) == ["ReturnArityMismatch"]
    assert result.diagnostics[0].line_number == 4


def test_end_without_function_and_with_arguments():
    assert _kinds(translate_source("%end")) == ["EndOutsideFunction"]
    assert _kinds(translate_source("%func (int) f();\n%end now")) == ["MalformedDirective"]


def test_duplicate_definition_cites_first_definition():
    src = f"{FRED}\n%end\n%func (double) fred();\n"
    result = translate_source(src)

    assert _kinds(result) == ["DuplicateDefinition"]
    diag = result.diagnostics[0]
    assert diag.line_number == 3
    assert diag.context == (f"fred defined on line 1: {FRED}",)
    assert "line 3" in diag.format()
    assert diag.format("prog.tc").startswith("prog.tc:3: error:")


def test_call_to_unknown_function_emits_nothing():
    result = translate_source("int a;\n%call (int x) = nobody();\nint b;\n")

    assert _kinds(result) == ["UnknownTupleFunction"]
    assert result.output == ("int a;",)


def test_call_argument_and_tuple_arity_checks():
    arg_result = translate_source(f"{FRED}\n%call (int x, int y, char *s) = fred();")
    assert _kinds(arg_result) == ["ArgumentArityMismatch"]
    assert "takes 1 argument but 0 were given" in arg_result.diagnostics[0].message

    tuple_result = translate_source(f"{FRED}\n%call (int x, int y) = fred(1.0);")
    assert _kinds(tuple_result) == ["TupleArityMismatch"]
    assert tuple_result.diagnostics[0].context[0].startswith("fred defined on line 1")


def test_call_type_mismatch_names_position_and_types():
    src = "%func (int, int) fred(double a);\n%end\n%call (int x, double y) = fred(2.0);"
    result = translate_source(src)

    assert _kinds(result) == ["TupleTypeMismatch"]
    message = result.diagnostics[0].message
    assert "binding 1" in message
    assert "'double'" in message
    assert "'int'" in message


def test_call_type_comparison_ignores_pointer_spacing():
    src = "%func (char **, int) f();\n%end\n%call (char**a, int n) = f();"
    result = translate_source(src)

    assert result.ok
    assert result.output[2].startswith("char **a; int n; a = f(&n);")


def test_call_argument_count_uses_top_level_commas():
    src = '%func (int, int) f(int a, char *s);\n%end\n%call (int x, int y) = f(g(1, 2), "a, b");'
    result = translate_source(src)

    assert result.ok
    assert 'x = f(g(1, 2), "a, b", &y);' in result.output[2]


def test_call_total_argument_count():
    src = "%func (int, int, int) f(int a, int b);\n%end\n    %call (int x, int y, int z) = f(1, 2);"
    line = translate_source(src).output[2]

    assert line.startswith("    int x; int y; int z; x = f(1, 2, &y, &z);")


def test_call_can_assign_existing_variables():
    src = "%func (int, int) f();\n%end\nint x, y;\n%call (x, y) = f();"
    result = translate_source(src)

    assert result.ok
    assert result.output[3] == "x = f(&y); /* %call (x, y) = f(); */"


def test_declaration_emits_prototype_and_allows_calls():
    src = "\n".join(
        [
            "%decl static (int, char *) lookup(int key);",
            "int main(void) {",
            "    %call (int code, char *name) = lookup(4);",
            "}",
            "%func static (int, char *) lookup(int key) {",
            '    %return (key, "four");',
            "%end",
        ]
    )
    result = translate_source(src)

    assert result.ok
    assert result.output[0] == "static int lookup(int key, char **tuple_out_1);"
    assert result.output[2].startswith("    int code; char *name; code = lookup(4, &name);")
    assert result.output[4] == "static int lookup(int key, char **tuple_out_1) {"


def test_declaration_conflict_is_reported():
    src = "%decl (int, int) f(int a);\n%func (int, double) f(int a) {"
    result = translate_source(src)

    assert _kinds(result) == ["ConflictingDeclaration"]
    assert result.diagnostics[0].context == ("f declared on line 1: %decl (int, int) f(int a);",)


def test_declaration_cannot_open_a_body():
    assert _kinds(translate_source("%decl (int) f() {")) == ["MalformedDirective"]


@pytest.mark.parametrize(
    "line",
    ["%frobnicate (1);", "%", "%  ", "%func int f();", "%return 1, 2;", "%call (int x) = f"],
)
def test_malformed_directives(line):
    result = translate_source(f"%func (int) f();\n{line}")
    assert _kinds(result) == ["MalformedDirective"]


def test_unknown_keyword_message_lists_known_directives():
    result = translate_source("%retrun (1);")
    message = result.diagnostics[0].message
    assert "'%retrun'" in message
    assert "%return" in message


def test_repeated_marker_and_plain_lines():
    src = "int x = 10 % 3;\n  %%func (int) f();\n\n"
    result = translate_source(src)

    assert result.output == ("int x = 10 % 3;", "  int f(void)", "")
    assert result.text == src.replace("%%func (int) f();", "int f(void)")


def test_collect_mode_reports_every_error_and_keeps_line_count():
    src = "\n".join(
        [
            "%return (1);",
            "%func (int, int) f();",
            "%return (1);",
            "%return (1, 2);",
            "%call (int a) = g();",
        ]
    )
    result = translate_source(src, fail_fast=False)

    assert _kinds(result) == [
        "ReturnOutsideFunction",
        "ReturnArityMismatch",
        "UnknownTupleFunction",
    ]
    assert [d.line_number for d in result.diagnostics] == [1, 3, 5]
    assert len(result.output) == 5
    assert result.output[0] == "%return (1);"
    assert result.completed


def test_strict_scopes_require_end():
    open_twice = "%func (int) f();\n%func (int) g();\n"
    result = translate_source(open_twice, require_end=True)
    assert _kinds(result) == ["UnterminatedFunction"]
    assert result.diagnostics[0].line_number == 2

    never_closed = "%func (int) f();\n{\n"
    result = translate_source(never_closed, require_end=True)
    assert _kinds(result) == ["UnterminatedFunction"]
    assert result.diagnostics[0].line_number == 1
    assert result.output == ("int f(void)", "{")

    closed = "%func (int) f();\n{\n%end\n%func (int) g();\n%end\n"
    assert translate_source(closed, require_end=True).ok


def test_custom_marker_and_output_prefix():
    src = "@func (int, int) f();\n@return (1, 2);\n%return stays"
    result = translate_source(src, marker="@", output_prefix="out")

    assert result.output == (
        "int f(int *out1)",
        "{ *out1 = 2; return 1; } /* @return (1, 2); */",
        "%return stays",
    )

    with pytest.raises(ValueError):
        Translator(marker=" ")
    with pytest.raises(ValueError):
        Translator(output_prefix="1bad")


def test_translate_line_returns_line_results():
    translator = Translator()
    first = translator.translate_line("%func (int, int) f(int a);\n")
    second = translator.translate_line("%call (int p, int q) = f();")

    assert first.ok
    assert first.line_number == 1
    assert first.output == "int f(int a, int *tuple_out_1)"
    assert not second.ok
    assert second.output is None
    assert second.diagnostic.kind == "ArgumentArityMismatch"
    assert second.diagnostic.line_number == 2


def test_calls_are_recorded_with_their_caller():
    src = "\n".join(
        [
            "%func (int, int) f();",
            "%end",
            "%func (int) g();",
            "%call (int a, int b) = f();",
            "%end",
            "%call (int c, int d) = f();",
        ]
    )
    result = translate_source(src)

    assert [(c.caller, c.callee, c.line_number) for c in result.calls] == [
        ("g", "f", 4),
        (None, "f", 6),
    ]


def test_translator_accepts_an_owned_registry():
    registry = FunctionRegistry()
    Translator(registry=registry).translate(["%func (int, int) f();"])
    second = Translator(registry=registry).translate(["%call (int a, int b) = f();"])

    assert second.ok
    assert second.registry is registry


def test_only_newlines_split_lines():
    src = "int a;\x0c\nint b; int c;\n\x0b\n%return (1);\n"
    result = translate_source(src, fail_fast=False)

    assert result.source == ("int a;\x0c", "int b; int c;", "\x0b", "%return (1);")
    assert result.output[:3] == result.source[:3]
    assert result.diagnostics[0].line_number == 4

    passthrough = "int a;\x0c\nint b;\n"
    assert translate_source(passthrough).text == passthrough
    assert translate_source("").output == ()
    assert translate_source("\n").text == "\n"


def test_calls_in_a_function_left_open_move_to_the_top_level():
    src = "\n".join(
        [
            "%func (int, int) f();",
            "{",
            "    %return (1, 2);",
            "}",
            "int main(void) {",
            "    %call (int a, int b) = f();",
            "}",
            "%func (int) g();",
            "%call (int c, int d) = f();",
            "%end",
            "%func (int) h();",
            "%call (int e, int k) = f();",
        ]
    )
    result = translate_source(src)

    assert result.ok
    assert [(c.caller, c.line_number) for c in result.calls] == [
        (None, 6),
        ("g", 9),
        (None, 12),
    ]


def test_count_messages_agree_in_number():
    src = "%func (int, int, int) f(int a);\n%end\n"
    one_value = translate_source("%func (int, int, int) f();\n%return (1);")
    assert "returns 3 values but 1 was given" in one_value.diagnostics[0].message

    one_arg = translate_source(src + "%call (int x, int y, int z) = f(1, 2);")
    assert "takes 1 argument but 2 were given" in one_arg.diagnostics[0].message

    one_binding = translate_source(src + "%call (int x) = f(1);")
    assert "returns 3 values but 1 binding was given" in one_binding.diagnostics[0].message


def test_default_output_parameters_avoid_reserved_identifiers():
    assert not OUTPUT_PARAM_PREFIX.startswith("__")

    header = translate_source("%func (int, int) f();").output[0]
    assert header == f"int f(int *{OUTPUT_PARAM_PREFIX}1)"
    assert "__" not in header
