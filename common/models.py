from django.db import models


class IdentifierSequence(models.Model):
    """
    Monotonic counter behind the human-readable identifiers
    (PAT000001, INV2501000001, ...).

    One row per sequence key. Rows are only ever incremented through
    common.identifiers.next_identifier.
    """

    key = models.CharField(
        max_length=32,
        primary_key=True,
        help_text="Sequence key, e.g. 'PAT' or 'INV2501'"
    )
    last_value = models.PositiveBigIntegerField(
        default=0,
        help_text="Last value handed out for this key"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'identifier_sequences'
        ordering = ['key']
        verbose_name = 'Identifier Sequence'
        verbose_name_plural = 'Identifier Sequences'

    def __str__(self):
        return f"{self.key} @ {self.last_value}"
