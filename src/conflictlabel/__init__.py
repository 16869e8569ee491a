"""Label and comment open pull requests that have merge conflicts."""
