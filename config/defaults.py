from config.schema import (
    GridConfig,
    SchedulerConfig,
    TimeBlock,
    TimeBlockDef,
)


def default_grid() -> GridConfig:
    """Standard school-day grid.

    Block 1  09:30 - 10:40
    Block 2  10:50 - 12:00
       ── Lunch 12:00 - 12:40 ──
    Block 3  12:40 - 13:50
    Block 4  14:00 - 15:10
    Block 5  15:20 - 16:30

    Blocks are 70 minutes long, which is also the default duration
    assumed by the batch conflict scan.
    """
    return GridConfig(
        blocks=[
            TimeBlockDef(block=TimeBlock.BLOCK_1, start_time="09:30", end_time="10:40"),
            TimeBlockDef(block=TimeBlock.BLOCK_2, start_time="10:50", end_time="12:00"),
            TimeBlockDef(block=TimeBlock.LUNCH, start_time="12:00", end_time="12:40",
                         bookable=False),
            TimeBlockDef(block=TimeBlock.BLOCK_3, start_time="12:40", end_time="13:50"),
            TimeBlockDef(block=TimeBlock.BLOCK_4, start_time="14:00", end_time="15:10"),
            TimeBlockDef(block=TimeBlock.BLOCK_5, start_time="15:20", end_time="16:30"),
        ],
    )


def default_scheduler_config() -> SchedulerConfig:
    """Complete default configuration."""
    return SchedulerConfig(
        school_name="Enrichment Program",
        grid=default_grid(),
    )
