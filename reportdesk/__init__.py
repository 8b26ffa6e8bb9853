"""ReportDesk: academic report submission and review service."""
