"""Tests for the extraction detectors."""

from guidelint.analysis.models import DetectorSettings


class TestOverExtractedFunction:
    """over-extracted-function"""

    def test_single_use_helper_with_flag_parameter(self, run_rule):
        code = """\
        function formatLabel(text: string, isBold: boolean) {
          if (isBold) {
            return `**${text}**`;
          }
          return text;
        }

        export function render(title: string) {
          return formatLabel(title, true);
        }
        """
        findings = run_rule("over-extracted-function", {"src/render.ts": code})
        assert len(findings) == 1
        assert findings[0].message == (
            "function 'formatLabel' has 1 call site(s) and branches on flag parameter 'isBold'"
        )
        assert findings[0].span.start_line == 1

    def test_flag_detected_by_boolean_default(self, run_rule):
        code = """\
        function describe(value, verbose = false) {
          return verbose ? `value=${value}` : String(value);
        }

        export function show(value) {
          return describe(value);
        }
        """
        findings = run_rule("over-extracted-function", {"src/show.ts": code})
        assert [f.message for f in findings] == [
            "function 'describe' has 1 call site(s) and branches on flag parameter 'verbose'"
        ]

    def test_short_single_use_helper_without_state(self, run_rule):
        code = """\
        function addTax(amount) {
          return amount * 1.2;
        }

        export function total(items) {
          return items.reduce((sum, item) => sum + addTax(item.price), 0);
        }
        """
        findings = run_rule("over-extracted-function", {"src/total.ts": code})
        assert [f.message for f in findings] == [
            "function 'addTax' has 1 call site(s) and only 1 statement(s) with no state of its own"
        ]

    def test_helper_used_twice_is_fine(self, run_rule):
        code = """\
        function addTax(amount) {
          return amount * 1.2;
        }

        export const net = addTax(10);
        export const gross = addTax(20);
        """
        assert run_rule("over-extracted-function", {"src/tax.ts": code}) == []

    def test_call_sites_are_counted_across_files(self, run_rule):
        helper = """\
        export function unused() {}
        function addTax(amount) {
          return amount * 1.2;
        }
        export const net = addTax(10);
        """
        other = """\
        export const prices = [1, 2].map(addTax);
        """
        findings = run_rule(
            "over-extracted-function", {"src/tax.ts": helper, "src/prices.ts": other}
        )
        assert findings == []

    def test_helper_with_internal_state_is_fine(self, run_rule):
        code = """\
        function countItems(items) {
          let count = items.length;
          return count;
        }

        export function summary(items) {
          return `${countItems(items)} items`;
        }
        """
        assert run_rule("over-extracted-function", {"src/summary.ts": code}) == []

    def test_exported_functions_and_constructors_are_exempt(self, run_rule):
        code = """\
        export function toCents(amount) {
          return amount * 100;
        }

        export class Price {
          constructor(amount) {
            this.amount = amount;
          }

          get cents() {
            return toCents(this.amount);
          }
        }
        """
        assert run_rule("over-extracted-function", {"src/price.ts": code}) == []


class TestDuplicatedStructure:
    """duplicated-structure"""

    @staticmethod
    def _copies(names):
        blocks = []
        for name in names:
            blocks.append(
                f"export function {name}(user) {{\n"
                f"  if (user.profile && user.profile.email) {{\n"
                f"    send(user.profile.email, \"welcome\");\n"
                f"  }}\n"
                f"}}\n"
            )
        return "\n".join(blocks)

    def test_three_copies_are_flagged(self, run_rule):
        code = self._copies(["a", "b", "c"])
        findings = run_rule("duplicated-structure", {"src/notify.ts": code})
        assert len(findings) == 3
        for finding in findings:
            assert finding.message.startswith("this code shape appears 3 times (also at src/notify.ts:")

    def test_copies_across_files(self, run_rule):
        findings = run_rule(
            "duplicated-structure",
            {
                "src/a.ts": self._copies(["a"]),
                "src/b.ts": self._copies(["b"]),
                "src/c.ts": self._copies(["c"]),
            },
        )
        assert [f.path for f in findings] == ["src/a.ts", "src/b.ts", "src/c.ts"]
        assert "also at src/b.ts:1, src/c.ts:1" in findings[0].message

    def test_two_copies_are_not_flagged(self, run_rule):
        code = self._copies(["a", "b"])
        assert run_rule("duplicated-structure", {"src/notify.ts": code}) == []

    def test_threshold_is_configurable(self, run_rule):
        code = self._copies(["a", "b"])
        settings = DetectorSettings(duplicate_threshold=2)
        findings = run_rule("duplicated-structure", {"src/notify.ts": code}, settings)
        assert len(findings) == 2

    def test_small_shapes_are_ignored(self, run_rule):
        code = """\
        if (a) { b(); }
        if (c) { d(); }
        if (e) { f(); }
        """
        assert run_rule("duplicated-structure", {"src/small.ts": code}) == []


class TestFlagParameterCallSites:
    """A flag-parameter helper stops being flagged once it is widely used."""

    HELPER = """\
    export function renderAll() {
      return [%s];
    }

    function formatLabel(text, isBold) {
      if (isBold) {
        return `**${text}**`;
      }
      return text;
    }
    """

    def test_one_call_site_is_flagged(self, run_rule):
        code = self.HELPER % "formatLabel('a', true)"
        findings = run_rule("over-extracted-function", {"src/render-all.ts": code})
        assert len(findings) == 1

    def test_four_call_sites_are_fine(self, run_rule):
        calls = ", ".join(f"formatLabel('{c}', true)" for c in "abcd")
        code = self.HELPER % calls
        assert run_rule("over-extracted-function", {"src/render-all.ts": code}) == []
