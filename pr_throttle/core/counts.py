def current_pr_included(is_current_draft: bool, count_drafts: bool) -> bool:
    """Whether the open-PR search (which drops drafts unless count_drafts) returned the PR being evaluated.

    The PR is always open at decision time, so only the draft filter matters.
    """
    return count_drafts or not is_current_draft

def normalize_open_count(raw_open_count: int, is_current_draft: bool, count_drafts: bool) -> int:
    """Open PRs by the author other than the one being evaluated.

    Not clamped: a search index that lags behind a just-opened PR yields -1,
    which stays below any allowed_open.
    """
    included = current_pr_included(is_current_draft, count_drafts)
    return raw_open_count - (1 if included else 0)
