# ================================
# BACKGROUND SCHEDULER (core/scheduler.py)
# ================================

import asyncio
import logging
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional, Callable
import traceback

from app.core.database import get_db_session
from app.config import settings

logger = logging.getLogger(__name__)

class BackgroundScheduler:
    """Simple background task scheduler for periodic tasks"""
    
    def __init__(self):
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.running = False
        self._task_handles: Dict[str, asyncio.Task] = {}
    
    def add_task(
        self,
        name: str,
        func: Callable,
        interval_seconds: int,
        initial_delay: int = 0,
        enabled: bool = True
    ):
        """Add a periodic task to the scheduler"""
        self.tasks[name] = {
            "func": func,
            "interval": interval_seconds,
            "initial_delay": initial_delay,
            "enabled": enabled,
            "last_run": None,
            "next_run": None,
            "run_count": 0,
            "error_count": 0,
            "last_error": None
        }
        logger.info(f"Scheduled task '{name}' with interval {interval_seconds}s")
    
    async def start(self):
        """Start the scheduler"""
        if self.running:
            logger.warning("Scheduler already running")
            return
        
        self.running = True
        logger.info("Starting background scheduler")
        
        # Start all enabled tasks
        for task_name, task_config in self.tasks.items():
            if task_config["enabled"]:
                self._task_handles[task_name] = asyncio.create_task(
                    self._run_task_loop(task_name)
                )
    
    async def stop(self):
        """Stop the scheduler"""
        self.running = False
        logger.info("Stopping background scheduler")
        
        # Cancel all running tasks
        for task_name, task_handle in self._task_handles.items():
            task_handle.cancel()
            try:
                await task_handle
            except asyncio.CancelledError:
                pass
        
        self._task_handles.clear()
        logger.info("Background scheduler stopped")
    
    async def _run_task_loop(self, task_name: str):
        """Run a task in a loop"""
        task_config = self.tasks[task_name]
        
        # Initial delay
        if task_config["initial_delay"] > 0:
            logger.info(f"Task '{task_name}' waiting {task_config['initial_delay']}s before first run")
            await asyncio.sleep(task_config["initial_delay"])
        
        while self.running and task_config["enabled"]:
            try:
                # Update next run time
                task_config["next_run"] = datetime.now(timezone.utc) + timedelta(
                    seconds=task_config["interval"]
                )
                
                # Run the task
                logger.info(f"Running scheduled task '{task_name}'")
                start_time = datetime.now(timezone.utc)
                
                await task_config["func"]()
                
                # Update task stats
                task_config["last_run"] = start_time
                task_config["run_count"] += 1
                
                duration = (datetime.now(timezone.utc) - start_time).total_seconds()
                logger.info(f"Task '{task_name}' completed in {duration:.2f}s")
                
            except Exception as e:
                task_config["error_count"] += 1
                task_config["last_error"] = {
                    "time": datetime.now(timezone.utc),
                    "error": str(e),
                    "traceback": traceback.format_exc()
                }
                logger.error(f"Error in scheduled task '{task_name}': {e}")
                logger.debug(traceback.format_exc())
            
            # Wait for next run
            await asyncio.sleep(task_config["interval"])
    
    def get_task_status(self, task_name: Optional[str] = None) -> Dict[str, Any]:
        """Get status of scheduled tasks"""
        if task_name:
            if task_name not in self.tasks:
                return {"error": f"Task '{task_name}' not found"}
            
            task = self.tasks[task_name]
            return {
                "name": task_name,
                "enabled": task["enabled"],
                "interval": task["interval"],
                "last_run": task["last_run"].isoformat() if task["last_run"] else None,
                "next_run": task["next_run"].isoformat() if task["next_run"] else None,
                "run_count": task["run_count"],
                "error_count": task["error_count"],
                "last_error": task["last_error"]["error"] if task["last_error"] else None
            }
        
        # Return all tasks
        return {
            name: self.get_task_status(name)
            for name in self.tasks
        }

# Global scheduler instance
scheduler = BackgroundScheduler()

# ================================
# SCHEDULED TASKS
# ================================

async def cleanup_conversation_state():
    """Evict conversation state older than SESSION_MAX_AGE_HOURS"""
    from app.services.session_store import get_session_store

    evicted = get_session_store().evict_older_than()
    if evicted > 0:
        logger.info(f"Evicted {evicted} stale conversation states")

async def send_daily_summary():
    """Send admins the day's bookings, revenue and commission"""
    from app.dependencies import get_notifier
    from app.services.booking_service import BookingService

    notifier = get_notifier()
    with get_db_session() as db:
        summary = BookingService(db, notifier).summarize_day(datetime.now(timezone.utc).date())

    sent = await notifier.daily_summary(summary)
    logger.info(f"Daily summary delivered to {sent} admins ({summary['bookings']} bookings)")

# ================================
# SCHEDULER INITIALIZATION
# ================================

def initialize_scheduler():
    """Initialize the scheduler with default tasks"""

    # Conversation state cleanup - every hour
    scheduler.add_task(
        name="session_cleanup",
        func=cleanup_conversation_state,
        interval_seconds=3600,  # 1 hour
        initial_delay=600,  # Wait 10 minutes after startup
        enabled=True
    )

    # Daily summary for admins
    scheduler.add_task(
        name="daily_summary",
        func=send_daily_summary,
        interval_seconds=settings.DAILY_SUMMARY_INTERVAL_SECONDS,
        initial_delay=seconds_until(settings.DAILY_SUMMARY_HOUR_UTC),
        enabled=settings.ENABLE_DAILY_SUMMARY
    )

    logger.info("Scheduler initialized with default tasks")

def seconds_until(hour_utc: int, now: Optional[datetime] = None) -> int:
    """Seconds from now until the next occurrence of hour_utc:00 UTC"""
    now = now or datetime.now(timezone.utc)
    target = now.replace(hour=hour_utc, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return int((target - now).total_seconds())
