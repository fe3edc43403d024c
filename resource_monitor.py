"""
Client-side resource sampling while a benchmark run is in progress.

The sampler watches this Python process only (CPU and resident memory); it
never talks to the database server.
"""

import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

import psutil


@dataclass
class ResourceUsage:
    """Resource usage statistics."""
    cpu_percent_avg: float = 0.0
    cpu_percent_max: float = 0.0
    memory_mb_avg: float = 0.0
    memory_mb_max: float = 0.0
    samples: int = 0

    def describe(self) -> str:
        if self.samples == 0:
            return "no resource samples"
        return (
            f"CPU: {self.cpu_percent_avg:.1f}% avg, {self.cpu_percent_max:.1f}% max | "
            f"Memory: {self.memory_mb_avg:.1f} MB avg, {self.memory_mb_max:.1f} MB max"
        )


class ResourceMonitor:
    """
    Monitor CPU and memory usage in a background thread.

    Usage:
        monitor = ResourceMonitor(interval=0.1)
        monitor.start()
        # ... do work ...
        stats = monitor.stop()
    """

    def __init__(self, interval: float = 0.1):
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._process = psutil.Process()
        self._samples: List[Tuple[float, float]] = []

    def _monitor_loop(self):
        # First call primes the counter and always returns 0.0
        self._process.cpu_percent(interval=None)

        while not self._stop_event.wait(self.interval):
            try:
                cpu = self._process.cpu_percent(interval=None)
                memory_mb = self._process.memory_info().rss / (1024 * 1024)
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                break
            self._samples.append((cpu, memory_mb))

    def start(self):
        """Start monitoring in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Monitor is already running")

        self._stop_event.clear()
        self._samples = []
        self._thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self._thread.start()

    def stop(self) -> ResourceUsage:
        """Stop monitoring and return average and peak usage."""
        if self._thread is None:
            return ResourceUsage()

        self._stop_event.set()
        self._thread.join(timeout=5.0)
        self._thread = None

        if not self._samples:
            return ResourceUsage()

        cpu = [s[0] for s in self._samples]
        memory = [s[1] for s in self._samples]
        return ResourceUsage(
            cpu_percent_avg=sum(cpu) / len(cpu),
            cpu_percent_max=max(cpu),
            memory_mb_avg=sum(memory) / len(memory),
            memory_mb_max=max(memory),
            samples=len(self._samples),
        )
