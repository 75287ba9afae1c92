"""File operations on a resolved SharePoint drive."""
