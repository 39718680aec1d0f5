"""Integration tests: textual LLVM IR through llvmlite to expression trees."""

import textwrap

import pytest

from irlift.ast import AstContext, AstError, NodeKind, to_smt
from irlift.config import LiftConfig
from irlift.ir import (
    CallInstruction,
    ComparisonInstruction,
    ConstantInt,
    IRError,
    Opcode,
    Predicate,
    parse_module,
    load_module,
)
from irlift.lifting import LiftingError, lift_function, lift_source


def ir(text):
    return textwrap.dedent(text).strip() + "\n"


ARITH = ir(
    """
    define i32 @add(i32 %a, i32 %b) {
    entry:
      %r = add i32 %a, %b
      ret i32 %r
    }

    define i32 @poly(i32 %a, i32 %b) {
    entry:
      %t0 = mul i32 %a, %a
      %t1 = shl i32 %b, 3
      %t2 = sub i32 %t0, %t1
      ret i32 %t2
    }

    define i8 @dec(i8 %x) {
    entry:
      %r = add i8 %x, -1
      ret i8 %r
    }
    """
)


class TestFrontend:
    """Test conversion of llvmlite modules into the IR graph."""

    @pytest.fixture
    def module(self):
        return parse_module(ARITH)

    def test_functions_loaded(self, module):
        """Test every function becomes a Function."""
        assert set(module.functions) == {"add", "poly", "dec"}
        assert all(fn.is_straight_line() for fn in module.definitions())

    def test_arguments(self, module):
        """Test argument names, widths and order."""
        fn = module.get_function("add")

        assert [a.name for a in fn.arguments] == ["a", "b"]
        assert [a.type.bit_width for a in fn.arguments] == [32, 32]
        assert fn.return_type.bit_width == 32

    def test_operands_wired(self, module):
        """Test operand references point at the defining instruction."""
        fn = module.get_function("poly")
        t0, t1, t2, ret = fn.entry_block.instructions

        assert t2.opcode == Opcode.SUB
        assert t2.operands == (t0, t1)
        assert ret.operands == (t2,)
        assert t0.operands[0] is fn.arguments[0]
        assert isinstance(t1.operands[1], ConstantInt)
        assert t1.operands[1].value == 3

    def test_negative_constant_stored_unsigned(self, module):
        """Test negative literals are stored as their bit pattern."""
        add = module.get_function("dec").entry_block.instructions[0]

        assert add.operands[1].value == 255
        assert add.operands[1].bit_width == 8

    def test_comparison_and_call(self):
        """Test icmp predicates and call targets are captured."""
        module = parse_module(
            ir(
                """
                declare i16 @llvm.bswap.i16(i16)

                define i1 @f(i16 %a) {
                entry:
                  %s = call i16 @llvm.bswap.i16(i16 %a)
                  %c = icmp sge i16 %s, 7
                  ret i1 %c
                }
                """
            )
        )
        call, cmp, _ = module.get_function("f").entry_block.instructions

        assert isinstance(call, CallInstruction)
        assert call.callee == "llvm.bswap.i16"
        assert call.operands == (module.get_function("f").arguments[0],)
        assert isinstance(cmp, ComparisonInstruction)
        assert cmp.predicate == Predicate.SGE
        assert module.get_function("llvm.bswap.i16").is_declaration

    def test_unnamed_values(self):
        """Test unnamed arguments and results are named by their slot."""
        module = parse_module(
            ir(
                """
                define i32 @anon(i32 %0, i32 %1) {
                  %3 = mul i32 %0, %1
                  ret i32 %3
                }
                """
            )
        )
        fn = module.get_function("anon")

        assert [a.name for a in fn.arguments] == ["0", "1"]
        assert fn.entry_block.instructions[0].name == "3"

    def test_unsupported_opcode_kept(self):
        """Test unsupported opcodes keep their mnemonic."""
        module = parse_module(
            ir(
                """
                define i32 @branchy(i32 %a) {
                entry:
                  br label %exit
                exit:
                  ret i32 %a
                }
                """
            )
        )
        fn = module.get_function("branchy")

        assert fn.num_blocks == 2
        assert not fn.is_straight_line()
        assert fn.entry_block.terminator.opcode == Opcode.UNKNOWN
        assert fn.entry_block.terminator.opcode_name == "br"

    def test_parse_error(self):
        """Test malformed IR raises IRError with the LLVM diagnostic."""
        with pytest.raises(IRError) as exc_info:
            parse_module("define i32 @broken( {")

        assert exc_info.value.detail

    def test_load_module(self, tmp_path):
        """Test loading from a file."""
        path = tmp_path / "arith.ll"
        path.write_text(ARITH)

        module = load_module(path)

        assert module.name == "arith.ll"
        assert "poly" in module

    def test_load_missing_file(self, tmp_path):
        """Test a missing file raises IRError."""
        with pytest.raises(IRError, match="Cannot read"):
            load_module(tmp_path / "missing.ll")


class TestLiftSource:
    """Test end-to-end lifting of LLVM IR text."""

    def test_add(self):
        """Test the simplest function."""
        assert to_smt(lift_source(ARITH, "add")) == "(bvadd a b)"

    def test_poly(self):
        """Test a small expression DAG."""
        assert to_smt(lift_source(ARITH, "poly")) == "(bvsub (bvmul a a) (bvshl b (_ bv3 32)))"

    def test_negative_constant(self):
        """Test constants are taken as stored."""
        assert to_smt(lift_source(ARITH, "dec")) == "(bvadd x (_ bv255 8))"

    @pytest.mark.parametrize(
        "opcode,symbol",
        [
            ("add", "bvadd"),
            ("sub", "bvsub"),
            ("mul", "bvmul"),
            ("sdiv", "bvsdiv"),
            ("udiv", "bvudiv"),
            ("srem", "bvsrem"),
            ("urem", "bvurem"),
            ("lshr", "bvlshr"),
            ("ashr", "bvashr"),
            ("shl", "bvshl"),
            ("and", "bvand"),
            ("or", "bvor"),
            ("xor", "bvxor"),
        ],
    )
    def test_binary_opcodes(self, opcode, symbol):
        """Test each binary opcode through the front end."""
        text = ir(
            f"""
            define i64 @f(i64 %a, i64 %b) {{
            entry:
              %r = {opcode} i64 %a, %b
              ret i64 %r
            }}
            """
        )

        assert to_smt(lift_source(text, "f")) == f"({symbol} a b)"

    @pytest.mark.parametrize(
        "predicate,symbol",
        [
            ("eq", "="),
            ("ne", "distinct"),
            ("uge", "bvuge"),
            ("ugt", "bvugt"),
            ("ule", "bvule"),
            ("ult", "bvult"),
            ("sge", "bvsge"),
            ("sgt", "bvsgt"),
            ("sle", "bvsle"),
            ("slt", "bvslt"),
        ],
    )
    def test_predicates(self, predicate, symbol):
        """Test each icmp predicate through the front end."""
        text = ir(
            f"""
            define i1 @f(i32 %a, i32 %b) {{
            entry:
              %c = icmp {predicate} i32 %a, %b
              ret i1 %c
            }}
            """
        )

        root = lift_source(text, "f")

        assert root.is_logical
        assert to_smt(root) == f"({symbol} a b)"

    def test_logical_and(self):
        """Test AND of two comparisons becomes ite(and, 1, 0)."""
        text = ir(
            """
            define i1 @both(i32 %a, i32 %b) {
            entry:
              %c1 = icmp ult i32 %a, %b
              %c2 = icmp eq i32 %a, 0
              %r = and i1 %c1, %c2
              ret i1 %r
            }
            """
        )

        assert to_smt(lift_source(text, "both")) == (
            "(ite (and (bvult a b) (= a (_ bv0 32))) (_ bv1 1) (_ bv0 1))"
        )

    def test_logical_xor(self):
        """Test XOR of two comparisons becomes ite(xor, 1, 0)."""
        text = ir(
            """
            define i1 @either(i32 %a, i32 %b) {
            entry:
              %c1 = icmp sgt i32 %a, %b
              %c2 = icmp ne i32 %b, 0
              %r = xor i1 %c1, %c2
              ret i1 %r
            }
            """
        )

        root = lift_source(text, "either")

        assert root.kind == NodeKind.ITE
        assert root.children[0].kind == NodeKind.LXOR

    def test_width_changes(self):
        """Test sext, zext and trunc parameters."""
        text = ir(
            """
            define i32 @widen(i8 %x) {
            entry:
              %r = sext i8 %x to i32
              ret i32 %r
            }

            define i64 @zwiden(i16 %h) {
            entry:
              %r = zext i16 %h to i64
              ret i64 %r
            }

            define i8 @narrow(i32 %a) {
            entry:
              %r = trunc i32 %a to i8
              ret i8 %r
            }
            """
        )
        module = parse_module(text)
        ctx = AstContext()

        assert to_smt(lift_function(module, "widen", ctx)) == "((_ sign_extend 24) x)"
        assert to_smt(lift_function(module, "zwiden", ctx)) == "((_ zero_extend 48) h)"
        assert to_smt(lift_function(module, "narrow", ctx)) == "((_ extract 7 0) a)"

    def test_select(self):
        """Test select over a comparison and over a folded constant."""
        text = ir(
            """
            define i32 @max(i32 %a, i32 %b) {
            entry:
              %c = icmp sgt i32 %a, %b
              %r = select i1 %c, i32 %a, i32 %b
              ret i32 %r
            }

            define i32 @folded(i32 %a, i32 %b) {
            entry:
              %r = select i1 true, i32 %a, i32 %b
              ret i32 %r
            }
            """
        )
        module = parse_module(text)

        assert to_smt(lift_function(module, "max")) == "(ite (bvsgt a b) a b)"
        assert to_smt(lift_function(module, "folded")) == "(ite (= (_ bv1 1) (_ bv1 1)) a b)"

    def test_bswap(self):
        """Test the byte swap intrinsic."""
        text = ir(
            """
            declare i32 @llvm.bswap.i32(i32)

            define i32 @swap(i32 %a) {
            entry:
              %r = call i32 @llvm.bswap.i32(i32 %a)
              ret i32 %r
            }
            """
        )

        assert to_smt(lift_source(text, "swap")) == (
            "(concat ((_ extract 7 0) a) (concat ((_ extract 15 8) a) "
            "(concat ((_ extract 23 16) a) ((_ extract 31 24) a))))"
        )

    def test_unnamed_arguments(self):
        """Test slot-named arguments lift to quoted variables."""
        text = ir(
            """
            define i32 @anon(i32 %0, i32 %1) {
              %3 = mul i32 %0, %1
              ret i32 %3
            }
            """
        )

        assert to_smt(lift_source(text, "anon")) == "(bvmul |0| |1|)"

    def test_other_call_rejected(self):
        """Test calls outside the whitelist fail."""
        text = ir(
            """
            declare i32 @ext(i32)

            define i32 @caller(i32 %a) {
            entry:
              %r = call i32 @ext(i32 %a)
              ret i32 %r
            }
            """
        )

        with pytest.raises(LiftingError, match="Call not supported: @ext") as exc_info:
            lift_source(text, "caller")

        assert exc_info.value.function == "caller"

    def test_branch_rejected(self):
        """Test a function whose entry block branches fails."""
        text = ir(
            """
            define i32 @branchy(i32 %a) {
            entry:
              br label %exit
            exit:
              ret i32 %a
            }
            """
        )

        with pytest.raises(LiftingError, match="Instruction not supported: br"):
            lift_source(text, "branchy")

    def test_bool_to_int(self):
        """Test the zero-extended comparison emitted for ``return a < b``."""
        text = ir(
            """
            define i32 @as_int(i32 %a, i32 %b) {
            entry:
              %c = icmp slt i32 %a, %b
              %r = zext i1 %c to i32
              ret i32 %r
            }
            """
        )

        assert to_smt(lift_source(text, "as_int")) == (
            "((_ zero_extend 31) (ite (bvslt a b) (_ bv1 1) (_ bv0 1)))"
        )

    def test_mixed_connective(self):
        """Test a comparison combined with a truncated integer."""
        text = ir(
            """
            define i1 @mixed(i32 %a, i32 %b) {
            entry:
              %c = icmp ugt i32 %a, %b
              %t = trunc i32 %b to i1
              %r = and i1 %c, %t
              ret i1 %r
            }
            """
        )

        assert to_smt(lift_source(text, "mixed")) == (
            "(bvand (ite (bvugt a b) (_ bv1 1) (_ bv0 1)) ((_ extract 0 0) b))"
        )

    def test_float_argument_unresolved(self):
        """Test non-integer arguments are not registered."""
        text = ir(
            """
            define float @id(float %f) {
            entry:
              ret float %f
            }
            """
        )

        with pytest.raises(AstError, match="Variable not found"):
            lift_source(text, "id")

    def test_missing_function(self):
        """Test lifting an absent function."""
        with pytest.raises(LiftingError, match="Function not found: nope"):
            lift_source(ARITH, "nope")

    @pytest.mark.parametrize(
        "config",
        [LiftConfig(memoize=True), LiftConfig(traversal="worklist")],
    )
    def test_strategies_match(self, config):
        """Test all strategies produce the same interned root."""
        module = parse_module(ARITH)
        ctx = AstContext()

        expected = lift_function(module, "poly", ctx)

        assert lift_function(module, "poly", ctx, config) is expected
