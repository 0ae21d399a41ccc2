"""Tests for the early-return detectors."""

from guidelint.analysis.models import DetectorSettings, Severity

DEEP = """\
function process(order) {
  if (order) {
    if (order.items) {
      if (order.items.length > 0) {
        if (order.paid) {
          ship(order);
        }
      }
    }
  }
}
"""


class TestPreferEarlyReturn:
    """prefer-early-return"""

    def test_flags_if_nested_past_the_limit(self, run_rule):
        findings = run_rule("prefer-early-return", {"src/order.ts": DEEP})
        assert len(findings) == 1
        finding = findings[0]
        assert finding.severity is Severity.WARNING
        assert finding.span.start_line == 5
        assert finding.message == "'if' nested 4 levels deep in function 'process' (max 3)"
        assert finding.suggestion

    def test_limit_is_configurable(self, run_rule):
        settings = DetectorSettings(max_nesting_depth=2)
        findings = run_rule("prefer-early-return", {"src/order.ts": DEEP}, settings)
        assert [f.span.start_line for f in findings] == [4, 5]

    def test_within_limit_is_clean(self, run_rule):
        code = """\
        function ok(a, b, c) {
          if (a) {
            if (b) {
              if (c) {
                run();
              }
            }
          }
        }
        """
        assert run_rule("prefer-early-return", {"src/ok.ts": code}) == []

    def test_else_if_chain_stays_on_one_level(self, run_rule):
        code = """\
        function grade(score) {
          if (score > 90) {
            return "A";
          } else if (score > 80) {
            return "B";
          } else if (score > 70) {
            return "C";
          } else if (score > 60) {
            return "D";
          }
          return "F";
        }
        """
        assert run_rule("prefer-early-return", {"src/grade.ts": code}) == []

    def test_if_with_else_under_else_less_parents_is_flagged(self, run_rule):
        code = """\
        function pick(a, b, c, d) {
          if (a) {
            if (b) {
              if (c) {
                if (d) {
                  return 1;
                } else {
                  return 2;
                }
              }
            }
          }
          return 0;
        }
        """
        findings = run_rule("prefer-early-return", {"src/pick.ts": code})
        assert [f.span.start_line for f in findings] == [5]
        assert findings[0].message == "'if' nested 4 levels deep in function 'pick' (max 3)"

    def test_every_level_with_else_is_not_flagged(self, run_rule):
        code = """\
        function pick(a, b, c, d) {
          if (a) {
            if (b) {
              if (c) {
                if (d) {
                  return 1;
                } else {
                  return 2;
                }
              } else {
                return 3;
              }
            } else {
              return 4;
            }
          } else {
            return 5;
          }
        }
        """
        assert run_rule("prefer-early-return", {"src/pick.ts": code}) == []

    def test_nested_functions_are_measured_separately(self, run_rule):
        code = """\
        function outer(a, b, items) {
          if (a) {
            if (b) {
              items.forEach((item) => {
                if (item) {
                  if (item.ready) {
                    use(item);
                  }
                }
              });
            }
          }
        }
        """
        assert run_rule("prefer-early-return", {"src/outer.ts": code}) == []


class TestExcessiveGuardClauses:
    """excessive-guard-clauses"""

    GUARDS = """\
    function register(user) {
      if (!user) return null;
      if (!user.email) return null;
      if (!user.name) {
        throw new Error("name required");
      }
      if (user.banned) return null;
      if (user.age < 13) return null;
      return save(user);
    }
    """

    def test_flags_long_guard_run(self, run_rule):
        findings = run_rule("excessive-guard-clauses", {"src/register.ts": self.GUARDS})
        assert len(findings) == 1
        assert findings[0].severity is Severity.INFO
        assert findings[0].message == "function 'register' has 5 guard clauses (max 4)"
        assert findings[0].span.start_line == 1

    def test_fewer_guards_are_fine(self, run_rule):
        code = """\
        function register(user) {
          if (!user) return null;
          if (!user.email) return null;
          return save(user);
        }
        """
        assert run_rule("excessive-guard-clauses", {"src/register.ts": code}) == []

    def test_threshold_is_configurable(self, run_rule):
        settings = DetectorSettings(max_guard_clauses=6)
        assert run_rule(
            "excessive-guard-clauses", {"src/register.ts": self.GUARDS}, settings
        ) == []
