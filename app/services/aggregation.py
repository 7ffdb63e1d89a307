"""
WealthDesk - Aggregation Functions

Pure reducers behind the dashboard and report endpoints. Every function
takes collections that were already passed through ``scope`` and never
touches the database.

Money is summed as Decimal and emitted as float rounded to 2 places.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from app.models.requests import RequestStatus
from app.models.transaction import Indicator
from app.utils.error_handling import ValidationException

ZERO = Decimal("0")

PORTFOLIO_SPLIT: Tuple[Tuple[str, int], ...] = (
    ("Equity", 45),
    ("Mutual Funds", 30),
    ("Bonds", 15),
    ("Fixed Deposits", 10),
)

AGE_BUCKETS: Tuple[Tuple[str, int, Optional[int]], ...] = (
    ("18-25", 18, 25),
    ("26-35", 26, 35),
    ("36-45", 36, 45),
    ("46-55", 46, 55),
    ("55+", 56, None),
)

PERFORMANCE_PERIODS: Dict[str, int] = {"1M": 1, "3M": 3, "6M": 6, "1Y": 12}
BENCHMARK_FACTOR = Decimal("0.8")

# Revenue model rates
MANAGEMENT_FEE_RATE = Decimal("0.02")
PERFORMANCE_FEE_RATE = Decimal("0.15")
ADVISORY_FEE_RATE = Decimal("0.005")
OTHER_FEE_RATE = Decimal("0.05")


# ===========================================
# HELPERS
# ===========================================

def money(value: Any) -> float:
    """Round to cents and convert for JSON output."""
    return float(round(Decimal(value or 0), 2))


def as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def month_start(day: date, months_back: int = 0) -> date:
    return day.replace(day=1) - relativedelta(months=months_back)


def _in_month(day: Optional[date], start: date) -> bool:
    return day is not None and day.year == start.year and day.month == start.month


def sum_amounts(rows: Iterable[Any], amount_of: Callable[[Any], Any]) -> Decimal:
    """Total of ``amount_of(row)`` over ``rows``; missing amounts count as zero."""
    total = ZERO
    for row in rows:
        total += Decimal(amount_of(row) or 0)
    return total


def _ledger_amount(txn: Any) -> Any:
    return txn.amount


def _of_indicator(transactions: Iterable[Any], indicator: Indicator) -> List[Any]:
    return [t for t in transactions if t.indicator_id == int(indicator)]


def totals_by_indicator(transactions: Sequence[Any]) -> Dict[str, float]:
    """Ledger totals keyed by indicator label (``investments``, ``payouts`` ...)."""
    totals = {f"{ind.label}s": ZERO for ind in Indicator}
    for txn in transactions:
        try:
            key = f"{Indicator(txn.indicator_id).label}s"
        except ValueError:
            continue
        totals[key] += Decimal(txn.amount or 0)
    return {key: money(value) for key, value in totals.items()}


def growth_percentage(current: Any, previous: Any) -> float:
    """
    Period-over-period growth.

    A zero previous period yields 100 when the current period is positive
    and 0 otherwise, never infinity.
    """
    current = Decimal(current or 0)
    previous = Decimal(previous or 0)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 1)


# ===========================================
# DASHBOARD STATS
# ===========================================

def admin_stats(
    clients: Sequence[Any],
    transactions: Sequence[Any],
    withdrawals: Sequence[Any],
    today: date,
) -> Dict[str, Any]:
    this_month = month_start(today)
    payouts = [
        t for t in _of_indicator(transactions, Indicator.PAYOUT)
        if _in_month(as_date(t.transaction_date), this_month)
    ]
    return {
        "totalClients": len(clients),
        "totalInvestments": money(sum_amounts(_of_indicator(transactions, Indicator.INVESTMENT), _ledger_amount)),
        "activeWithdrawals": sum(1 for w in withdrawals if w.status == RequestStatus.PENDING.value),
        "thisMonthPayouts": money(sum_amounts(payouts, _ledger_amount)),
    }


def leader_stats(
    leader_client_id: Optional[int],
    clients: Sequence[Any],
    transactions: Sequence[Any],
    referrals: Sequence[Any],
    today: date,
    commission_rate: float,
) -> Dict[str, Any]:
    """
    Stats for a leader over their team.

    ``transactions`` must already be scoped to the leader's team;
    ``myClients`` counts direct referrals only.
    """
    this_month = month_start(today)
    team_payouts = sum_amounts(_of_indicator(transactions, Indicator.PAYOUT), _ledger_amount)
    return {
        "myClients": sum(1 for c in clients if c.reference_id == leader_client_id),
        "teamInvestments": money(sum_amounts(_of_indicator(transactions, Indicator.INVESTMENT), _ledger_amount)),
        "referralsThisMonth": sum(
            1 for r in referrals
            if r.client_id == leader_client_id and _in_month(as_date(r.created_date), this_month)
        ),
        "commissionEarned": money(team_payouts * Decimal(str(commission_rate))),
    }


def client_stats(
    transactions: Sequence[Any],
    referrals: Sequence[Any],
    withdrawals: Sequence[Any],
) -> Dict[str, Any]:
    return {
        "totalInvestment": money(sum_amounts(_of_indicator(transactions, Indicator.INVESTMENT), _ledger_amount)),
        "totalPayout": money(sum_amounts(_of_indicator(transactions, Indicator.PAYOUT), _ledger_amount)),
        "activeReferrals": len(referrals),
        "pendingWithdrawals": sum(1 for w in withdrawals if w.status == RequestStatus.PENDING.value),
    }


# ===========================================
# DISTRIBUTIONS
# ===========================================

def portfolio_distribution(total: Any) -> List[Dict[str, Any]]:
    """Fixed placeholder allocation of ``total``; each share is floored."""
    total = Decimal(total or 0)
    return [
        {"name": name, "value": share, "amount": int(total * share / 100)}
        for name, share in PORTFOLIO_SPLIT
    ]


def _age(dob: date, today: date) -> int:
    return today.year - dob.year


def client_demographics(clients: Sequence[Any], today: date) -> List[Dict[str, Any]]:
    """Age buckets as a share of all clients; clients without a dob land in no bucket."""
    counts = {name: 0 for name, _, _ in AGE_BUCKETS}
    for client in clients:
        dob = as_date(client.dob)
        if dob is None:
            continue
        age = _age(dob, today)
        for name, low, high in AGE_BUCKETS:
            if age >= low and (high is None or age <= high):
                counts[name] += 1
                break

    total = len(clients)
    return [
        {
            "name": name,
            "value": round(count / total * 100) if total else 0,
            "count": count,
        }
        for name, count in counts.items()
    ]


def kyc_status(clients: Sequence[Any]) -> List[Dict[str, Any]]:
    counts = {"verified": 0, "pending": 0, "rejected": 0}
    for client in clients:
        counts[client.kyc_state] += 1

    total = len(clients)
    return [
        {
            "name": name.capitalize(),
            "value": count,
            "percentage": round(count / total * 100, 1) if total else 0,
        }
        for name, count in counts.items()
    ]


def revenue_breakdown(transactions: Sequence[Any]) -> List[Dict[str, Any]]:
    investments = sum_amounts(_of_indicator(transactions, Indicator.INVESTMENT), _ledger_amount)
    payouts = sum_amounts(_of_indicator(transactions, Indicator.PAYOUT), _ledger_amount)

    sources = [
        ("Management Fees", investments * MANAGEMENT_FEE_RATE),
        ("Performance Fees", payouts * PERFORMANCE_FEE_RATE),
        ("Advisory Fees", investments * ADVISORY_FEE_RATE),
        ("Other", max(payouts - investments, ZERO) * OTHER_FEE_RATE),
    ]
    total = sum((amount for _, amount in sources), ZERO)
    return [
        {
            "source": name,
            "amount": money(amount),
            "percentage": round(float(amount / total * 100), 1) if total else 0,
        }
        for name, amount in sources
    ]


# ===========================================
# BRANCHES
# ===========================================

def branch_performance(
    branches: Sequence[Any],
    clients: Sequence[Any],
    investments: Sequence[Any],
    today: date,
) -> List[Dict[str, Any]]:
    """
    AUM and growth per branch from approved investment requests.

    Growth compares the last three months with the three before them.
    """
    recent_start = month_start(today, 3)
    previous_start = month_start(today, 6)

    approved = [i for i in investments if i.status == RequestStatus.APPROVED.value]
    rows = []
    for branch in branches:
        member_ids = {c.client_id for c in clients if c.branch_id == branch.branch_id}
        branch_investments = [i for i in approved if i.client_id in member_ids]

        recent = ZERO
        previous = ZERO
        for inv in branch_investments:
            day = as_date(inv.investment_date)
            amount = Decimal(inv.investment_amount or 0)
            if day >= recent_start:
                recent += amount
            elif day >= previous_start:
                previous += amount

        growth = round(float((recent - previous) / previous * 100), 1) if previous else 0
        rows.append({
            "branch": branch.name,
            "clients": len(member_ids),
            "aum": money(sum_amounts(branch_investments, lambda i: i.investment_amount)),
            "growth": growth,
        })

    rows.sort(key=lambda r: r["aum"], reverse=True)
    return rows


# ===========================================
# ACTIVITY AND TRENDS
# ===========================================

def recent_activity(
    investments: Sequence[Any],
    withdrawals: Sequence[Any],
    transactions: Sequence[Any],
    limit: int = 10,
    client_names: Optional[Mapping[int, str]] = None,
) -> List[Dict[str, Any]]:
    """Merge requests and ledger entries, newest first."""
    names = client_names or {}
    items: List[Dict[str, Any]] = []

    for inv in investments:
        items.append({
            "id": f"INV-{inv.client_investment_request_id}",
            "type": "Investment Request",
            "amount": money(inv.investment_amount),
            "date": inv.created_date,
            "clientId": inv.client_id,
            "status": inv.status,
            "description": inv.investment_remark or "",
        })
    for wd in withdrawals:
        items.append({
            "id": f"WD-{wd.client_withdrawal_request_id}",
            "type": "Withdrawal Request",
            "amount": money(wd.withdrawal_amount),
            "date": wd.created_date,
            "clientId": wd.client_id,
            "status": wd.status,
            "description": wd.withdrawal_remark or "",
        })
    for txn in transactions:
        indicator = txn.indicator
        items.append({
            "id": f"TXN-{txn.transaction_id}",
            "type": indicator.label.capitalize() if indicator else "Unknown",
            "amount": money(txn.amount),
            "date": datetime.combine(as_date(txn.transaction_date), datetime.min.time()),
            "clientId": txn.client_id,
            "status": "completed",
            "description": txn.remark or "",
        })

    items.sort(key=lambda item: item["date"], reverse=True)
    items = items[:limit]
    for item in items:
        item["client"] = names.get(item["clientId"], "Unknown")
        item["date"] = item["date"].isoformat()
    return items


def monthly_trends(
    transactions: Sequence[Any],
    today: date,
    months: int = 6,
) -> List[Dict[str, Any]]:
    """
    Exactly ``months`` consecutive buckets ending at the current month, oldest first.

    Each in-window transaction lands in exactly one bucket.
    """
    starts = [month_start(today, back) for back in range(months - 1, -1, -1)]
    buckets = {
        (start.year, start.month): {
            "investments": ZERO,
            "payouts": ZERO,
            "clients": set(),
        }
        for start in starts
    }

    for txn in transactions:
        day = as_date(txn.transaction_date)
        bucket = buckets.get((day.year, day.month)) if day else None
        if bucket is None:
            continue
        bucket["clients"].add(txn.client_id)
        if txn.indicator_id == Indicator.INVESTMENT:
            bucket["investments"] += Decimal(txn.amount or 0)
        elif txn.indicator_id == Indicator.PAYOUT:
            bucket["payouts"] += Decimal(txn.amount or 0)

    result = []
    for start in starts:
        bucket = buckets[(start.year, start.month)]
        result.append({
            "month": start.strftime("%b"),
            "year": start.year,
            "investments": money(bucket["investments"]),
            "payouts": money(bucket["payouts"]),
            "clients": len(bucket["clients"]),
        })
    return result


def investment_performance(
    transactions: Sequence[Any],
    period: str,
    today: date,
) -> Dict[str, Any]:
    """
    Payout return over the trailing ``period`` (1M, 3M, 6M or 1Y).

    Raises:
        ValidationException: unknown period
    """
    months = PERFORMANCE_PERIODS.get(period.upper() if period else "")
    if months is None:
        raise ValidationException(
            f"Invalid period '{period}'. Use one of: {', '.join(PERFORMANCE_PERIODS)}",
            field="period",
        )

    since = today - relativedelta(months=months)
    window = [t for t in transactions if as_date(t.transaction_date) >= since]
    invested = sum_amounts(_of_indicator(window, Indicator.INVESTMENT), _ledger_amount)
    paid = sum_amounts(_of_indicator(window, Indicator.PAYOUT), _ledger_amount)

    returns = paid / invested * 100 if invested else ZERO
    return {
        "period": period.upper(),
        "totalInvestment": money(invested),
        "totalPayout": money(paid),
        "returns": money(returns),
        "benchmark": money(returns * BENCHMARK_FACTOR),
    }


def top_performers(
    clients: Sequence[Any],
    transactions: Sequence[Any],
    today: date,
    limit: int = 5,
) -> List[Dict[str, Any]]:
    """Clients ranked by month-over-month payout growth."""
    this_month = month_start(today)
    last_month = month_start(today, 1)

    current: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    previous: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    for txn in _of_indicator(transactions, Indicator.PAYOUT):
        day = as_date(txn.transaction_date)
        if _in_month(day, this_month):
            current[txn.client_id] += Decimal(txn.amount or 0)
        elif _in_month(day, last_month):
            previous[txn.client_id] += Decimal(txn.amount or 0)

    rows = [
        {
            "clientId": c.client_id,
            "code": c.code,
            "name": c.name,
            "currentPayout": money(current[c.client_id]),
            "previousPayout": money(previous[c.client_id]),
            "growth": growth_percentage(current[c.client_id], previous[c.client_id]),
        }
        for c in clients
    ]
    rows.sort(key=lambda r: r["growth"], reverse=True)
    return rows[:limit]


# ===========================================
# REPORTS
# ===========================================

def role_based_report(
    clients: Sequence[Any],
    transactions: Sequence[Any],
    investments: Sequence[Any],
    withdrawals: Sequence[Any],
) -> Dict[str, Any]:
    """Per-client ledger positions plus a summary over the scope."""
    by_client: Dict[int, List[Any]] = defaultdict(list)
    for txn in transactions:
        by_client[txn.client_id].append(txn)

    pending: Dict[int, int] = defaultdict(int)
    for req in list(investments) + list(withdrawals):
        if req.status == RequestStatus.PENDING.value:
            pending[req.client_id] += 1

    rows = []
    for client in clients:
        entries = by_client.get(client.client_id, [])
        totals = {ind: sum_amounts(_of_indicator(entries, ind), _ledger_amount) for ind in Indicator}
        last = max((as_date(t.transaction_date) for t in entries), default=None)
        rows.append({
            "clientId": client.client_id,
            "code": client.code,
            "name": client.name,
            "totalInvestment": money(totals[Indicator.INVESTMENT]),
            "totalPayout": money(totals[Indicator.PAYOUT]),
            "totalWithdrawal": money(totals[Indicator.WITHDRAWAL]),
            "totalClosure": money(totals[Indicator.CLOSURE]),
            "transactionCount": len(entries),
            "pendingRequests": pending[client.client_id],
            "lastTransactionDate": last.isoformat() if last else None,
            "netPosition": money(totals[Indicator.INVESTMENT] - totals[Indicator.WITHDRAWAL]),
        })

    summary = totals_by_indicator(transactions)
    return {
        "clients": rows,
        "summary": {
            "clientCount": len(clients),
            "totalInvestment": summary["investments"],
            "totalPayout": summary["payouts"],
            "totalWithdrawal": summary["withdrawals"],
            "totalClosure": summary["closures"],
            "transactionCount": len(transactions),
        },
    }


def analytics(
    transactions: Sequence[Any],
    clients: Sequence[Any],
    today: date,
) -> Dict[str, Any]:
    """Twelve-month trend, top ten investors and the ledger type mix."""
    invested: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    for txn in _of_indicator(transactions, Indicator.INVESTMENT):
        invested[txn.client_id] += Decimal(txn.amount or 0)

    ranked = sorted(clients, key=lambda c: invested[c.client_id], reverse=True)[:10]
    top_clients = [
        {
            "clientId": c.client_id,
            "code": c.code,
            "name": c.name,
            "totalInvestment": money(invested[c.client_id]),
        }
        for c in ranked
    ]

    distribution = []
    for ind in Indicator:
        entries = _of_indicator(transactions, ind)
        distribution.append({
            "type": ind.label.capitalize(),
            "count": len(entries),
            "amount": money(sum_amounts(entries, _ledger_amount)),
        })

    return {
        "monthlyTrends": monthly_trends(transactions, today, months=12),
        "topClients": top_clients,
        "typeDistribution": distribution,
        "totals": totals_by_indicator(transactions),
    }
