import logging


class ColoredFormatter(logging.Formatter):
    """Colours each line by level and each thread name by thread."""

    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[91m",  # Red
        "RESET": "\033[0m",
    }
    THREAD_COLORS = [
        "\033[96m",  # Cyan
        "\033[95m",  # Magenta
        "\033[94m",  # Blue
        "\033[93m",  # Yellow
    ]

    def __init__(self, fmt):
        super().__init__(fmt)
        self.thread_color_map = {}

    def format(self, record):
        thread_name = record.threadName
        if thread_name not in self.thread_color_map:
            color_index = len(self.thread_color_map) % len(self.THREAD_COLORS)
            self.thread_color_map[thread_name] = self.THREAD_COLORS[color_index]

        # Work on a copy so other handlers see the plain thread name
        record = logging.makeLogRecord(record.__dict__)
        record.threadName = f"{self.thread_color_map[thread_name]}{thread_name}{self.COLORS['RESET']}"

        log_message = super().format(record)
        return f"{self.COLORS.get(record.levelname, self.COLORS['RESET'])}{log_message}{self.COLORS['RESET']}"


def setup_logging(level="INFO"):
    """Install the coloured, thread-aware formatter on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(ColoredFormatter("%(asctime)s - %(threadName)s - %(message)s"))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    # The connector logs every packet at DEBUG
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
