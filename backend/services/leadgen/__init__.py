"""Lead enrichment: job scheduling, the per-record pipeline, case matching and regeneration."""
