from ..schemas import DisplayModel, RepositorySummary


def format_count(value: int | None) -> str:
    # en-US grouping, e.g. 1234 -> "1,234"
    return f"{value or 0:,}"


def present(repo: RepositorySummary) -> DisplayModel:
    owner_login = repo.owner.login if repo.owner else None
    return DisplayModel(
        name=repo.full_name or repo.name or "Unknown repo",
        url=repo.html_url or "#",
        description=repo.description or "No description provided.",
        stars=format_count(repo.stargazers_count),
        forks=format_count(repo.forks_count),
        issues=format_count(repo.open_issues_count),
        language_label=f"Language: {repo.language}" if repo.language else "Language: (unknown)",
        owner_label=f"Owner: {owner_login}" if owner_login else "Owner: (unknown)",
    )
