"""Course team categories, teams and team-activity assignments."""
