from __future__ import annotations


def compute_redemption_diff(
    *,
    used_codes_without_redemption: int,
    redemptions_with_unused_code: int,
    redemption_value_mismatches: int,
) -> int:
    return (
        max(0, used_codes_without_redemption)
        + max(0, redemptions_with_unused_code)
        + max(0, redemption_value_mismatches)
    )


def reconciliation_status(diff_count: int) -> str:
    return "OK" if diff_count == 0 else "DIFF"
