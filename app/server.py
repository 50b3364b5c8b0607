"""FastAPI host running the periodic report loop"""
import asyncio
import os
import time
from typing import Optional
from fastapi import FastAPI, HTTPException
from config import Config
from metrics.registry import MetricsRegistry
from reporting.client import BulkClient, ElasticSearchBulkClient
from reporting.formatting import default_name_formatter
from reporting.payload import BulkPayloadBuilder
from reporting.reporter import ElasticSearchReporter
from logging_config import get_logger, log_error


logger = get_logger(__name__)


class ReporterServer:
    """Hosts a reporter: schedules report runs and exposes health/status"""

    def __init__(self, config: Config, registry: Optional[MetricsRegistry] = None,
                 client: Optional[BulkClient] = None):
        self.config = config
        self.registry = registry or MetricsRegistry()
        self.client = client or ElasticSearchBulkClient.from_config(config)
        self.reporter = ElasticSearchReporter(
            client=self.client,
            payload_builder=BulkPayloadBuilder(config.get_reporter_tags()),
            report_interval=config.report_interval_delta,
            name_formatter=default_name_formatter(config.name_separator),
            name=config.reporter_name,
            flush_timeout=config.flush_timeout,
        )
        self.app = FastAPI(
            title="Metrics Reporter",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        # Report state
        self.last_success_time = 0
        self.run_count = 0
        self.run_failures = 0
        self.report_task = None
        self._run_lock = asyncio.Lock()

        self._setup_routes()
        self._setup_events()

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            age = time.time() - self.last_success_time if self.last_success_time > 0 else float('inf')
            is_healthy = age < self.config.report_interval * 2

            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "last_success_seconds_ago": round(age, 1) if age != float('inf') else None,
                "report_interval": self.config.report_interval,
                "total_runs": self.run_count,
                "run_failures": self.run_failures,
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            age = time.time() - self.last_success_time if self.last_success_time > 0 else float('inf')

            return {
                "reporter": {
                    "name": self.reporter.name,
                    "state": self.reporter.state.value,
                    "report_interval_seconds": self.reporter.report_interval.total_seconds(),
                    "dropped_metrics": self.reporter.dropped_count,
                    "hostname": os.uname().nodename
                },
                "runs": {
                    "last_success_seconds_ago": round(age, 1) if age != float('inf') else None,
                    "total_runs": self.run_count,
                    "run_failures": self.run_failures,
                    "success_rate": round((self.run_count - self.run_failures) / max(self.run_count, 1) * 100, 1)
                },
                "elasticsearch": {
                    "url": self.config.elasticsearch_url,
                    "index": self.config.elasticsearch_index
                },
                "contexts": self.registry.list_contexts()
            }

        @self.app.post('/report')
        async def manual_report():
            """Manually trigger a report run"""
            try:
                success = await self.run_once()
            except Exception as e:
                log_error(logger, e, {"component": "manual_report", "endpoint": "/report"})
                raise HTTPException(status_code=500, detail={"error": str(e)})

            return {
                "success": success,
                "run_count": self.run_count
            }

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            logger.info(
                "Reporter startup initiated",
                reporter=self.reporter.name,
                report_interval=self.config.report_interval,
                event_type="server_startup"
            )
            self.report_task = asyncio.create_task(self._report_loop())

        @self.app.on_event("shutdown")
        async def shutdown_event():
            logger.info("Shutting down metrics reporter", event_type="server_shutdown")

            if self.report_task:
                self.report_task.cancel()
                try:
                    await self.report_task
                except asyncio.CancelledError:
                    pass

            await self.client.close()
            self.reporter.dispose()

    async def _report_loop(self):
        """Background report loop"""
        while True:
            try:
                await self.run_once()
                await asyncio.sleep(self.config.report_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                log_error(logger, e, {"component": "report_loop", "run_failures": self.run_failures})
                await asyncio.sleep(min(self.config.report_interval, 30))

    async def run_once(self) -> bool:
        """Snapshot the registry and run one report cycle"""
        # Runs share one payload builder, never overlap them
        async with self._run_lock:
            self.run_count += 1
            try:
                snapshot = self.registry.snapshot()
                success = await self.reporter.report(snapshot)
            except Exception:
                self.run_failures += 1
                raise

            if success:
                self.last_success_time = time.time()
            else:
                self.run_failures += 1
            return success

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
