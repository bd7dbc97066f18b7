"""Read operations on the Task model."""

TASK_FIELDS = """
      id
      text
      category
      dueDate
      priority
      completed
      owner
      createdAt
      updatedAt
      _version
      _deleted
"""

get_task = f"""
  query GetTask($id: ID!) {{
    getTask(id: $id) {{{TASK_FIELDS}    }}
  }}
"""

list_tasks = f"""
  query ListTasks(
    $filter: ModelTaskFilterInput
    $limit: Int
    $nextToken: String
  ) {{
    listTasks(filter: $filter, limit: $limit, nextToken: $nextToken) {{
      items {{{TASK_FIELDS}      }}
      nextToken
    }}
  }}
"""
