import threading


class _Run:
    __slots__ = ("done", "result", "error")

    def __init__(self):
        self.done = threading.Event()
        self.result = None
        self.error = None


class OnceInitializer:
    """
    Runs an idempotent setup function so that concurrent callers share one
    in-flight run instead of racing each other.

    The in-flight marker is cleared when the run finishes (successfully or
    not), so a later call runs the function again; the wrapped function is
    expected to be a no-op once its work is done.
    """

    def __init__(self, fn, name=None):
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "init")
        self._lock = threading.Lock()
        self._current = None

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._current is not None

    def __call__(self, *args, **kwargs):
        with self._lock:
            run = self._current
            owner = run is None
            if owner:
                run = self._current = _Run()

        if not owner:
            run.done.wait()
            if run.error is not None:
                raise run.error
            return run.result

        try:
            run.result = self._fn(*args, **kwargs)
            return run.result
        except Exception as exc:
            run.error = exc
            raise
        finally:
            with self._lock:
                self._current = None
            run.done.set()
