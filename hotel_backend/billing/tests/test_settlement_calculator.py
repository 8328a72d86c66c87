from decimal import Decimal

from django.test import SimpleTestCase

from billing.services.money import to_money
from billing.services.settlement_calculator import compute_settlement, compute_with_config
from property_config.services import TaxRuleSnapshot, build_settlement_config

VAT = TaxRuleSnapshot(id=1, name="VAT", rate=Decimal("0.075"), kind="VAT")
SC = TaxRuleSnapshot(id=2, name="Service Charge", rate=Decimal("0.10"), kind="SERVICE_CHARGE")

TWO_ROOMS = [{"quantity": 2, "unit_price": Decimal("10000")}]


class SettlementCalculatorTests(SimpleTestCase):
    """
    GUARANTEES:
    - Inclusive: total == net, base = total / (1 + sum_rates)
    - Exclusive: base == net, total = base + sum(taxes)
    - Discount is flat, applied before tax, clamped at zero
    - Pure: identical input -> identical output
    """

    # --------------------------------------------------
    # Reference scenarios
    # --------------------------------------------------

    def test_inclusive_pricing_backs_tax_out_of_the_total(self):
        s = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=True)

        self.assertEqual(s.gross_subtotal, Decimal("20000"))
        self.assertEqual(s.total_amount, Decimal("20000"))
        self.assertEqual(to_money(s.base_value), Decimal("17021.28"))
        self.assertEqual(to_money(s.vat_amount), Decimal("1276.60"))
        self.assertEqual(to_money(s.service_charge_amount), Decimal("1702.13"))

    def test_exclusive_pricing_adds_tax_on_top(self):
        s = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=False)

        self.assertEqual(s.base_value, Decimal("20000"))
        self.assertEqual(s.vat_amount, Decimal("1500"))
        self.assertEqual(s.service_charge_amount, Decimal("2000"))
        self.assertEqual(s.total_amount, Decimal("23500"))

    def test_per_tax_is_keyed_by_rule_id(self):
        s = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=False)
        self.assertEqual(s.per_tax, {1: Decimal("1500"), 2: Decimal("2000")})

    # --------------------------------------------------
    # Edge cases
    # --------------------------------------------------

    def test_zero_rules_base_equals_total(self):
        for inclusive in (True, False):
            s = compute_settlement(TWO_ROOMS, 0, [], inclusive=inclusive)
            self.assertEqual(s.base_value, s.total_amount)
            self.assertEqual(s.tax_total, Decimal("0"))
            self.assertEqual(s.tax_lines, ())

    def test_discount_is_subtracted_before_tax(self):
        s = compute_settlement(TWO_ROOMS, Decimal("2000"), [VAT, SC], inclusive=False)

        self.assertEqual(s.net_after_discount, Decimal("18000"))
        self.assertEqual(s.base_value, Decimal("18000"))
        self.assertEqual(s.total_amount, Decimal("21150"))

    def test_discount_larger_than_subtotal_clamps_to_zero(self):
        s = compute_settlement(TWO_ROOMS, Decimal("50000"), [VAT, SC], inclusive=False)

        self.assertEqual(s.net_after_discount, Decimal("0"))
        self.assertEqual(s.total_amount, Decimal("0"))
        self.assertEqual(s.tax_total, Decimal("0"))

    def test_empty_item_list_gives_zero_totals(self):
        s = compute_settlement([], 0, [VAT], inclusive=False)
        self.assertEqual(s.gross_subtotal, Decimal("0"))
        self.assertEqual(s.total_amount, Decimal("0"))

    def test_unknown_and_other_kinds_fall_into_vat_bucket(self):
        levy = TaxRuleSnapshot(id=3, name="Levy", rate=Decimal("0.05"), kind="OTHER")
        odd = {"id": 4, "name": "Tourism", "rate": "0.01", "kind": "TOURISM"}

        s = compute_settlement(TWO_ROOMS, 0, [levy, odd], inclusive=False)

        self.assertEqual(s.vat_amount, Decimal("1200.00"))
        self.assertEqual(s.service_charge_amount, Decimal("0"))

    def test_rates_are_summed_not_compounded(self):
        s = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=False)
        self.assertEqual(s.total_amount, s.base_value * (1 + VAT.rate + SC.rate))

    def test_explicit_line_total_is_used_when_present(self):
        rows = [{"quantity": 3, "unit_price": "100", "line_total": "300"}, {"quantity": 1, "unit_price": "50"}]
        s = compute_settlement(rows, 0, [], inclusive=False)
        self.assertEqual(s.gross_subtotal, Decimal("350"))

    # --------------------------------------------------
    # Properties
    # --------------------------------------------------

    def test_inclusive_and_exclusive_are_inverse(self):
        exclusive = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=False)
        inclusive = compute_settlement(
            [{"quantity": 1, "unit_price": exclusive.total_amount}], 0, [VAT, SC], inclusive=True
        )

        self.assertEqual(inclusive.base_value, exclusive.base_value)
        self.assertEqual(inclusive.vat_amount, exclusive.vat_amount)
        self.assertEqual(inclusive.service_charge_amount, exclusive.service_charge_amount)

    def test_deterministic(self):
        first = compute_settlement(TWO_ROOMS, Decimal("150"), [VAT, SC], inclusive=True)
        second = compute_settlement(TWO_ROOMS, Decimal("150"), [VAT, SC], inclusive=True)
        self.assertEqual(first, second)

    def test_rounded_parts_may_miss_the_total_by_a_cent(self):
        # Known precision caveat: rounding happens per stored field.
        s = compute_settlement(TWO_ROOMS, 0, [VAT, SC], inclusive=True)

        parts = to_money(s.base_value) + to_money(s.vat_amount) + to_money(s.service_charge_amount)
        self.assertEqual(parts, Decimal("20000.01"))
        self.assertLessEqual(abs(parts - to_money(s.total_amount)), Decimal("0.01"))

    def test_compute_with_config_uses_the_snapshot(self):
        config = build_settlement_config([VAT, SC], is_tax_inclusive=True)
        s = compute_with_config(TWO_ROOMS, 0, config)

        self.assertTrue(s.inclusive)
        self.assertEqual(s.total_amount, Decimal("20000"))
