"""
WealthDesk - Aggregation Function Tests

The reducers are pure, so these run on plain namespaces.
"""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models.transaction import Indicator
from app.services import aggregation
from app.utils.error_handling import ValidationException

TODAY = date(2026, 5, 15)


def txn(client_id, indicator, amount, on=TODAY, transaction_id=1):
    return SimpleNamespace(
        transaction_id=transaction_id,
        client_id=client_id,
        indicator_id=int(indicator),
        indicator=indicator,
        amount=Decimal(amount),
        transaction_date=on,
        remark=None,
    )


def client(client_id, reference_id=None, dob=None, pan_no=None, aadhaar_no=None, branch_id=None):
    record = SimpleNamespace(
        client_id=client_id,
        code=f"C{client_id}",
        name=f"Client {client_id}",
        reference_id=reference_id,
        dob=dob,
        pan_no=pan_no,
        aadhaar_no=aadhaar_no,
        branch_id=branch_id,
    )
    present = sum(1 for v in (pan_no, aadhaar_no) if v)
    record.kyc_state = {2: "verified", 1: "pending"}.get(present, "rejected")
    return record


def request(client_id, status="pending", created=None):
    return SimpleNamespace(client_id=client_id, status=status, created_date=created or datetime(2026, 5, 1))


class TestGrowthPercentage:

    def test_zero_previous_positive_current(self):
        assert aggregation.growth_percentage(500, 0) == 100.0

    def test_zero_previous_zero_current(self):
        assert aggregation.growth_percentage(0, 0) == 0.0

    def test_regular_growth(self):
        assert aggregation.growth_percentage(150, 100) == 50.0
        assert aggregation.growth_percentage(50, 100) == -50.0


class TestStats:

    def test_admin_stats(self):
        transactions = [
            txn(1, Indicator.INVESTMENT, "1000"),
            txn(2, Indicator.INVESTMENT, "500"),
            txn(1, Indicator.PAYOUT, "40"),
            txn(1, Indicator.PAYOUT, "60", on=date(2026, 4, 30)),
        ]
        withdrawals = [request(1), request(2, status="approved")]

        stats = aggregation.admin_stats([client(1), client(2)], transactions, withdrawals, TODAY)

        assert stats == {
            "totalClients": 2,
            "totalInvestments": 1500.0,
            "activeWithdrawals": 1,
            "thisMonthPayouts": 40.0,
        }

    def test_leader_stats_commission(self):
        clients = [client(10), client(11, reference_id=10), client(12, reference_id=10)]
        transactions = [
            txn(11, Indicator.INVESTMENT, "50000"),
            txn(11, Indicator.PAYOUT, "2000"),
        ]
        referrals = [request(10, created=datetime(2026, 5, 2)), request(10, created=datetime(2026, 3, 2))]

        stats = aggregation.leader_stats(10, clients, transactions, referrals, TODAY, 0.10)

        assert stats["myClients"] == 2
        assert stats["teamInvestments"] == 50000.0
        assert stats["commissionEarned"] == 200.0
        assert stats["referralsThisMonth"] == 1

    def test_leader_without_client_is_all_zero(self):
        stats = aggregation.leader_stats(None, [], [], [], TODAY, 0.10)
        assert stats == {
            "myClients": 0,
            "teamInvestments": 0.0,
            "referralsThisMonth": 0,
            "commissionEarned": 0.0,
        }

    def test_client_stats(self):
        transactions = [txn(1, Indicator.INVESTMENT, "50000"), txn(1, Indicator.PAYOUT, "2000")]
        stats = aggregation.client_stats(transactions, [request(1)], [request(1), request(1, "rejected")])
        assert stats == {
            "totalInvestment": 50000.0,
            "totalPayout": 2000.0,
            "activeReferrals": 1,
            "pendingWithdrawals": 1,
        }

    def test_totals_are_additive_over_disjoint_sets(self):
        a = [txn(1, Indicator.INVESTMENT, "10.10"), txn(1, Indicator.PAYOUT, "1.01")]
        b = [txn(2, Indicator.INVESTMENT, "20.20"), txn(2, Indicator.CLOSURE, "5")]

        combined = aggregation.totals_by_indicator(a + b)
        separate = [aggregation.totals_by_indicator(a), aggregation.totals_by_indicator(b)]

        for key in combined:
            assert combined[key] == pytest.approx(separate[0][key] + separate[1][key])


class TestDistributions:

    def test_portfolio_distribution_floors_each_share(self):
        rows = aggregation.portfolio_distribution(Decimal("999"))
        assert [r["name"] for r in rows] == ["Equity", "Mutual Funds", "Bonds", "Fixed Deposits"]
        assert [r["value"] for r in rows] == [45, 30, 15, 10]
        assert [r["amount"] for r in rows] == [449, 299, 149, 99]

    def test_portfolio_distribution_of_nothing(self):
        assert all(r["amount"] == 0 for r in aggregation.portfolio_distribution(0))

    def test_demographics_buckets(self):
        clients = [
            client(1, dob=date(2004, 1, 1)),   # 22
            client(2, dob=date(1996, 1, 1)),   # 30
            client(3, dob=date(1960, 1, 1)),   # 66
            client(4),                          # no dob
        ]
        rows = aggregation.client_demographics(clients, TODAY)

        assert [r["name"] for r in rows] == ["18-25", "26-35", "36-45", "46-55", "55+"]
        counts = {r["name"]: r["count"] for r in rows}
        assert counts == {"18-25": 1, "26-35": 1, "36-45": 0, "46-55": 0, "55+": 1}
        assert {r["name"]: r["value"] for r in rows}["18-25"] == 25

    def test_demographics_empty(self):
        rows = aggregation.client_demographics([], TODAY)
        assert len(rows) == 5
        assert all(r["value"] == 0 for r in rows)

    def test_kyc_status(self):
        clients = [
            client(1, pan_no="P", aadhaar_no="A"),
            client(2, pan_no="P"),
            client(3),
            client(4),
        ]
        rows = aggregation.kyc_status(clients)
        assert rows == [
            {"name": "Verified", "value": 1, "percentage": 25.0},
            {"name": "Pending", "value": 1, "percentage": 25.0},
            {"name": "Rejected", "value": 2, "percentage": 50.0},
        ]

    def test_revenue_breakdown_percentages_sum_to_hundred(self):
        rows = aggregation.revenue_breakdown([
            txn(1, Indicator.INVESTMENT, "10000"),
            txn(1, Indicator.PAYOUT, "1000"),
        ])
        assert rows[0]["source"] == "Management Fees"
        assert rows[0]["amount"] == 200.0
        assert [r["percentage"] for r in rows] == [50.0, 37.5, 12.5, 0.0]

    def test_revenue_breakdown_empty(self):
        assert all(r["percentage"] == 0 for r in aggregation.revenue_breakdown([]))


class TestTrends:

    def test_monthly_trends_bucket_completeness(self):
        transactions = [
            txn(1, Indicator.INVESTMENT, "100", on=date(2026, 5, 1)),
            txn(2, Indicator.PAYOUT, "10", on=date(2026, 3, 31)),
            txn(1, Indicator.INVESTMENT, "999", on=date(2025, 1, 1)),  # outside the window
        ]
        rows = aggregation.monthly_trends(transactions, TODAY, months=6)

        assert len(rows) == 6
        assert [(r["month"], r["year"]) for r in rows] == [
            ("Dec", 2025), ("Jan", 2026), ("Feb", 2026), ("Mar", 2026), ("Apr", 2026), ("May", 2026),
        ]
        assert sum(r["investments"] for r in rows) == 100.0
        assert sum(r["payouts"] for r in rows) == 10.0
        assert rows[-1]["clients"] == 1

    def test_investment_performance(self):
        transactions = [
            txn(1, Indicator.INVESTMENT, "1000", on=date(2026, 5, 1)),
            txn(1, Indicator.PAYOUT, "50", on=date(2026, 5, 10)),
            txn(1, Indicator.INVESTMENT, "5000", on=date(2025, 1, 1)),
        ]
        result = aggregation.investment_performance(transactions, "1m", TODAY)
        assert result == {
            "period": "1M",
            "totalInvestment": 1000.0,
            "totalPayout": 50.0,
            "returns": 5.0,
            "benchmark": 4.0,
        }

    def test_investment_performance_unknown_period(self):
        with pytest.raises(ValidationException):
            aggregation.investment_performance([], "2W", TODAY)

    def test_top_performers_ranked_by_growth(self):
        clients = [client(1), client(2)]
        transactions = [
            txn(1, Indicator.PAYOUT, "100", on=date(2026, 5, 3)),
            txn(1, Indicator.PAYOUT, "100", on=date(2026, 4, 3)),
            txn(2, Indicator.PAYOUT, "300", on=date(2026, 5, 3)),
        ]
        rows = aggregation.top_performers(clients, transactions, TODAY)
        assert [r["clientId"] for r in rows] == [2, 1]
        assert rows[0]["growth"] == 100.0
        assert rows[1]["growth"] == 0.0

    def test_recent_activity_newest_first_with_limit(self):
        investments = [SimpleNamespace(
            client_investment_request_id=1, investment_amount=Decimal("10"), created_date=datetime(2026, 5, 10, 9),
            client_id=1, status="pending", investment_remark=None,
        )]
        withdrawals = [SimpleNamespace(
            client_withdrawal_request_id=2, withdrawal_amount=Decimal("5"), created_date=datetime(2026, 5, 12, 9),
            client_id=1, status="pending", withdrawal_remark="rent",
        )]
        transactions = [txn(1, Indicator.PAYOUT, "1", on=date(2026, 5, 1), transaction_id=3)]

        rows = aggregation.recent_activity(investments, withdrawals, transactions, limit=2, client_names={1: "Asha"})

        assert [r["id"] for r in rows] == ["WD-2", "INV-1"]
        assert rows[0]["client"] == "Asha"
        assert rows[0]["date"] == "2026-05-12T09:00:00"


class TestReports:

    def test_role_based_report(self):
        clients = [client(1), client(2)]
        transactions = [
            txn(1, Indicator.INVESTMENT, "1000"),
            txn(1, Indicator.WITHDRAWAL, "300"),
            txn(2, Indicator.PAYOUT, "20"),
        ]
        report = aggregation.role_based_report(clients, transactions, [request(1)], [request(1, "approved")])

        first = report["clients"][0]
        assert first["netPosition"] == 700.0
        assert first["pendingRequests"] == 1
        assert first["transactionCount"] == 2
        assert report["summary"]["clientCount"] == 2
        assert report["summary"]["totalPayout"] == 20.0

    def test_analytics_shape(self):
        result = aggregation.analytics([txn(1, Indicator.INVESTMENT, "10")], [client(1)], TODAY)
        assert len(result["monthlyTrends"]) == 12
        assert result["topClients"][0]["totalInvestment"] == 10.0
        assert [d["type"] for d in result["typeDistribution"]] == ["Investment", "Payout", "Withdrawal", "Closure"]
