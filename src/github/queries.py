"""GraphQL documents sent to the GitHub API.

Kept separate from the client so query changes don't touch retry logic.
"""

STATS_QUERY = """
query userStats($login: String!) {
  user(login: $login) {
    contributionsCollection {
      totalCommitContributions
      totalPullRequestReviewContributions
    }
    repositoriesContributedTo(
      first: 1
      contributionTypes: [COMMIT, ISSUE, PULL_REQUEST, REPOSITORY]
    ) {
      totalCount
    }
    pullRequests(first: 1) {
      totalCount
    }
    mergedPullRequests: pullRequests(states: MERGED) {
      totalCount
    }
    openIssues: issues(states: OPEN) {
      totalCount
    }
    closedIssues: issues(states: CLOSED) {
      totalCount
    }
  }
}
"""

LANGUAGES_QUERY = """
query userLanguages($login: String!) {
  user(login: $login) {
    repositories(ownerAffiliations: OWNER, isFork: false, first: 100) {
      nodes {
        name
        languages(first: 10, orderBy: {field: SIZE, direction: DESC}) {
          edges {
            size
            node {
              name
            }
          }
        }
      }
    }
  }
}
"""

PROFILE_QUERY = """
query userProfile($login: String!) {
  user(login: $login) {
    createdAt
    followers {
      totalCount
    }
    repositories(ownerAffiliations: OWNER) {
      totalCount
    }
    topRepositories: repositories(
      first: 10
      ownerAffiliations: OWNER
      isFork: false
      orderBy: {field: STARGAZERS, direction: DESC}
    ) {
      nodes {
        name
        stargazerCount
        forkCount
        isFork
        description
      }
    }
  }
}
"""
