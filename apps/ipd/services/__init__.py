from .beds import (  # noqa: F401
    assign_bed,
    release_bed,
    mark_maintenance,
    reserve_bed,
    mark_available,
    delete_bed,
    bed_stats,
)
from .admissions import (  # noqa: F401
    admit_patient,
    discharge_patient,
    transfer_patient,
    add_treatment_note,
    add_vital_record,
    add_medication,
    ipd_stats,
)
