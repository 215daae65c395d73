"""Course activities and their lifecycle (due dates, soft delete)."""
