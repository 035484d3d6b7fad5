"""Domain services for transcript analysis and taxonomy evolution."""
