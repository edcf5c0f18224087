"""Restaurant admin data table controller."""
