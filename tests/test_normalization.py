"""Tests for the boundary-input detectors."""

import pytest

from guidelint.analysis.detectors.normalization import is_strict_pattern
from guidelint.analysis.models import DetectorSettings

NORMALIZE_RULE = "normalize-boundary-input"
PARSE_RULE = "parse-dont-validate"


class TestStrictPattern:
    """Strict pattern recognition."""

    @pytest.mark.parametrize(
        "pattern",
        [r"^\d+$", r"^\d{10}$", r"^[A-Z0-9]+$", r"^(\d{3})\d{4}$", r"^\w{8,}$", r"^[0-9]{5}$"],
    )
    def test_strict(self, pattern):
        assert is_strict_pattern(pattern)

    @pytest.mark.parametrize(
        "pattern",
        [r"\d+", r"^\+?[\d\s-]+$", r"^\d{3}-\d{4}$", r"^[\d ]+$", r"^.*$", "^$"],
    )
    def test_tolerant(self, pattern):
        assert not is_strict_pattern(pattern)


class TestNormalizeBoundaryInput:
    """normalize-boundary-input"""

    def test_validator_without_normalization(self, run_rule):
        code = """\
        export function validatePhoneNumber(phone: string) {
          return /^\\d{10}$/.test(phone);
        }
        """
        findings = run_rule(NORMALIZE_RULE, {"src/validate-phone-number.ts": code})
        assert len(findings) == 1
        assert findings[0].message == (
            "'validatePhoneNumber' matches phone input against strict pattern "
            "/^\\d{10}$/ without normalizing it first"
        )
        assert findings[0].span.start_line == 2

    def test_normalized_before_matching(self, run_rule):
        code = """\
        export function validatePhoneNumber(phone: string) {
          const digits = phone.replace(/\\D/g, "");
          return /^\\d{10}$/.test(digits);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/validate-phone-number.ts": code}) == []

    def test_normalized_inline(self, run_rule):
        code = """\
        export function parseZipCode(zip: string) {
          if (!/^\\d{5}$/.test(zip.trim())) {
            throw new Error("bad zip");
          }
          return zip.trim();
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/parse-zip-code.ts": code}) == []

    def test_regexp_constructor(self, run_rule):
        code = """\
        export function checkCardNumber(card) {
          const pattern = new RegExp("^\\\\d{16}$");
          return pattern.test(card);
        }
        """
        findings = run_rule(NORMALIZE_RULE, {"src/check-card-number.js": code})
        assert len(findings) == 1
        assert "/^\\d{16}$/" in findings[0].message

    def test_passwords_are_never_flagged(self, run_rule):
        code = """\
        export function validateAccountPassword(password: string) {
          return /^\\w{8,}$/.test(password);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/a.ts": code}) == []

    def test_non_normalizing_domain_is_ignored(self, run_rule):
        code = """\
        export function validateNickname(nick: string) {
          return /^\\w+$/.test(nick);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/a.ts": code}) == []

    def test_tolerant_pattern_is_fine(self, run_rule):
        code = """\
        export function validatePhone(phone: string) {
          return /^\\+?[\\d\\s-]+$/.test(phone);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/a.ts": code}) == []

    def test_boundary_detected_by_marker_call(self, run_rule):
        code = """\
        export function handleSignup(body) {
          const input = signupSchema.parse(body);
          return /^\\d+$/.test(input.phone);
        }
        """
        findings = run_rule(NORMALIZE_RULE, {"src/handle-signup.ts": code})
        assert findings == []

        code_with_domain = code.replace("handleSignup", "handlePhoneSignup")
        findings = run_rule(NORMALIZE_RULE, {"src/handle-signup.ts": code_with_domain})
        assert len(findings) == 1

    def test_schema_fields(self, run_rule):
        code = """\
        import { z } from "zod";

        export const signupSchema = z.object({
          phone: z.string().regex(/^\\d{10}$/),
          zipCode: z.string().trim().regex(/^\\d{5}$/),
          password: z.string().regex(/^\\w{12,}$/),
          cardNumber: z.preprocess(stripSpaces, z.string().regex(/^\\d{16}$/)),
        });
        """
        findings = run_rule(NORMALIZE_RULE, {"src/signup-schema.ts": code})
        assert [f.message for f in findings] == [
            "schema field 'phone' matches phone input against strict pattern "
            "/^\\d{10}$/ without normalizing it first"
        ]
        assert findings[0].span.start_line == 4

    def test_domains_are_configurable(self, run_rule):
        code = """\
        export function validateVoucher(voucher: string) {
          return /^[A-Z0-9]+$/.test(voucher);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/a.ts": code}) == []
        settings = DetectorSettings(normalize_domains=["voucher"])
        assert len(run_rule(NORMALIZE_RULE, {"src/a.ts": code}, settings)) == 1


class TestParseDontValidate:
    """parse-dont-validate"""

    def test_boolean_only_validator(self, run_rule):
        code = """\
        export function isValidEmail(email: string): boolean {
          if (!email.includes("@")) {
            return false;
          }
          return true;
        }
        """
        findings = run_rule(PARSE_RULE, {"src/is-valid-email.ts": code})
        assert [f.message for f in findings] == [
            "validator 'isValidEmail' only returns true/false; callers must re-check the raw value"
        ]
        assert findings[0].suggestion

    def test_parser_returning_value_is_fine(self, run_rule):
        code = """\
        export function validateEmail(raw: string) {
          const email = raw.trim().toLowerCase();
          if (!email.includes("@")) {
            return null;
          }
          return email;
        }
        """
        assert run_rule(PARSE_RULE, {"src/validate-email.ts": code}) == []

    def test_single_return_is_fine(self, run_rule):
        code = """\
        export function validateAge(age: number) {
          return age >= 18;
        }
        """
        assert run_rule(PARSE_RULE, {"src/validate-age.ts": code}) == []

    def test_other_names_are_ignored(self, run_rule):
        code = """\
        export function hasAccess(user) {
          if (user.admin) {
            return true;
          }
          return false;
        }
        """
        assert run_rule(PARSE_RULE, {"src/has-access.ts": code}) == []


class TestPasswordSuppression:
    """Password-shaped values are never normalized."""

    def test_validate_password(self, run_rule):
        code = """\
        export function validatePassword(password: string) {
          return /^\\d+$/.test(password);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/validate-password.ts": code}) == []

    def test_validate_pin_code_password(self, run_rule):
        code = """\
        export function validateCardPasscode(code: string) {
          return /^\\d{4}$/.test(code);
        }
        """
        assert run_rule(NORMALIZE_RULE, {"src/a.ts": code}) == []
