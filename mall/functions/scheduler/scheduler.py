import logging
from apscheduler.schedulers.background import BackgroundScheduler
from mall.functions.order.pending_orders import cancel_stale_pending_orders

def start_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")

    # Every 30 minutes
    scheduler.add_job(cancel_stale_pending_orders, "interval", minutes=30, id="cancel_stale_pending_orders")

    scheduler.start()
    logging.info("SYSTEM >>> Scheduler started")
    return scheduler
