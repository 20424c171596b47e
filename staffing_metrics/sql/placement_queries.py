"""
Parameterized SQL against the two ATS mirrors.

Symplr mirror (orders / profile_temp / profile_client / users):
    Filled orders carry pre-computed total_bill_amount / total_pay_amount that
    already include every pay-rate tier. A worker (profile_temp) belongs to a
    staffing specialist, which is the recruiter being ranked.

Bullhorn mirror (placement / corporate_user / corporation_department):
    Placements carry rates only. Amounts are computed in Python from the
    weekday overlap with the report week, so the query returns raw rows.
"""

from typing import Tuple

from staffing_metrics.models.enums import BullhornPlacementStatus


# Placement statuses that count toward billing
BULLHORN_BILLABLE_STATUSES: Tuple[str, ...] = tuple(
    status.value for status in BullhornPlacementStatus
)

SYMPLR_FILLED_STATUS = "filled"


# =============================================================================
# Symplr
# =============================================================================


def get_symplr_placements_query() -> str:
    """
    Per-recruiter bill/pay totals for filled orders in a week.

    Parameters:
        $1: week_start (date, inclusive)
        $2: week_end (date, inclusive)
    """
    return f"""
    SELECT
        u.userid AS recruiter_user_id,
        TRIM(CONCAT(u.firstname, ' ', u.lastname)) AS recruiter_name,
        u.division_id,
        COUNT(DISTINCT o.filledby) AS head_count,
        SUM(COALESCE(o.total_bill_amount, 0)) AS total_bill_amount,
        SUM(COALESCE(o.total_pay_amount, 0)) AS total_pay_amount
    FROM orders o
    INNER JOIN profile_temp pt ON o.filledby = pt.recordid
    INNER JOIN users u ON pt.staffingspecialist = u.userid
    WHERE o.status = '{SYMPLR_FILLED_STATUS}'
      AND o.shiftstarttime::date BETWEEN $1 AND $2
    GROUP BY u.userid, u.firstname, u.lastname, u.division_id
    """


def get_symplr_orders_query() -> str:
    """
    Filled orders for the hours report, one row per order.

    lunch_minutes comes from the client profile default; the per-order
    lesslunchmin field is only populated after payment.

    Parameters:
        $1: date_start (date, inclusive)
        $2: date_end (date, inclusive)
    """
    return f"""
    SELECT
        o.orderid AS order_id,
        u.userid AS ats_local_id,
        TRIM(CONCAT(u.firstname, ' ', u.lastname)) AS specialist_name,
        u.division_id,
        o.shiftstarttime AS shift_start,
        o.shiftendtime AS shift_end,
        COALESCE(pc.defaultlunchmins, 0) AS lunch_minutes
    FROM orders o
    INNER JOIN profile_temp pt ON o.filledby = pt.recordid
    INNER JOIN users u ON pt.staffingspecialist = u.userid
    INNER JOIN profile_client pc ON o.customerid = pc.recordid
    WHERE o.status = '{SYMPLR_FILLED_STATUS}'
      AND o.shiftstarttime::date BETWEEN $1 AND $2
    ORDER BY o.shiftstarttime, o.orderid
    """


def get_symplr_user_title_query() -> str:
    return """
    SELECT title
    FROM users
    WHERE userid = $1
    """


# =============================================================================
# Bullhorn
# =============================================================================


def get_bullhorn_placements_query() -> str:
    """
    Billable placements whose date range intersects the week.

    An open-ended placement (date_end NULL) is still running.

    Parameters:
        $1: week_start (date, inclusive)
        $2: week_end (date, inclusive)
        $3: billable statuses (text[])
    """
    return """
    SELECT
        p.placement_id,
        p.recruiter_user_id,
        TRIM(CONCAT(cu.first_name, ' ', cu.last_name)) AS recruiter_name,
        p.division_id,
        p.status,
        p.date_begin,
        p.date_end,
        COALESCE(p.client_bill_rate, 0) AS bill_rate,
        COALESCE(p.pay_rate, 0) AS pay_rate,
        p.hours_per_day
    FROM placement p
    INNER JOIN corporate_user cu ON p.recruiter_user_id = cu.user_id
    WHERE p.status = ANY($3::text[])
      AND p.date_begin <= $2
      AND (p.date_end IS NULL OR p.date_end >= $1)
    ORDER BY p.recruiter_user_id, p.placement_id
    """


def get_bullhorn_user_title_query() -> str:
    return """
    SELECT occupation AS title
    FROM corporate_user
    WHERE user_id = $1
    """


def get_bullhorn_user_department_query() -> str:
    return """
    SELECT d.name AS department_name
    FROM corporate_user cu
    INNER JOIN corporation_department d
        ON cu.primary_department_id = d.department_id
    WHERE cu.user_id = $1
    """
