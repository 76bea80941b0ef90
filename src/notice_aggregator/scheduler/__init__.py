"""스케줄러 패키지"""

from notice_aggregator.scheduler.cron import NoticeScheduler, run_scheduled

__all__ = ["NoticeScheduler", "run_scheduled"]
