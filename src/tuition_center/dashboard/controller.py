from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok
from ..container import Container
from ..serializers import mode_total_to_dict, payment_with_student_to_dict


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    @app.route(f"{prefix}/dashboard", methods=["GET"], endpoint="dashboard_summary")
    def dashboard_summary():
        summary = container.dashboard_service.summary()
        financials = summary["financials"]
        financials["recentTransactions"] = [payment_with_student_to_dict(p) for p in financials["recentTransactions"]]
        return ok(summary)

    @app.route(f"{prefix}/dashboard/batches", methods=["GET"], endpoint="dashboard_batches")
    def dashboard_batches():
        stats = container.dashboard_service.batch_statistics()
        return ok(stats, count=len(stats))

    @app.route(f"{prefix}/dashboard/fees", methods=["GET"], endpoint="dashboard_fees")
    def dashboard_fees():
        stats = container.dashboard_service.fee_statistics(
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        stats["paymentModeStats"] = [mode_total_to_dict(m) for m in stats["paymentModeStats"]]
        return ok(stats)
