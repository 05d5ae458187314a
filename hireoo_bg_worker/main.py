from __future__ import annotations

from hireoo_bg_worker.celery_app import celery_app
from hireoo_bg_worker import counters_worker  # noqa: F401  registers tasks


def main() -> None:
    # prefork is unreliable on Windows, solo keeps local runs working
    argv = ["worker", "--loglevel=info", "-P", "solo"]
    celery_app.worker_main(argv)


if __name__ == "__main__":
    main()
