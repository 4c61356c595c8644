class MetricNames:
    """Centralised exported metric family names"""

    # Entity throughput families
    READ_BYTES = "eos_io_read_bytes_per_second"
    WRITE_BYTES = "eos_io_write_bytes_per_second"
    READ_OPS = "eos_io_read_ops_per_second"
    WRITE_OPS = "eos_io_write_ops_per_second"

    # Upstream instrumentation
    THREAD_LOOP = "eos_io_thread_loop_microseconds"

    # Label names
    ENTITY_LABELS = ("entity_type", "id", "estimator")
    LOOP_LABELS = ("loop_name", "stat_type")

    @classmethod
    def entity_families(cls) -> list[str]:
        """Get all per-entity throughput family names"""
        return [cls.READ_BYTES, cls.WRITE_BYTES, cls.READ_OPS, cls.WRITE_OPS]