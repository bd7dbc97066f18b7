"""Write operations on the Task model. Update/delete carry `_version`."""

from .queries import TASK_FIELDS

create_task = f"""
  mutation CreateTask(
    $input: CreateTaskInput!
    $condition: ModelTaskConditionInput
  ) {{
    createTask(input: $input, condition: $condition) {{{TASK_FIELDS}    }}
  }}
"""

update_task = f"""
  mutation UpdateTask(
    $input: UpdateTaskInput!
    $condition: ModelTaskConditionInput
  ) {{
    updateTask(input: $input, condition: $condition) {{{TASK_FIELDS}    }}
  }}
"""

delete_task = f"""
  mutation DeleteTask(
    $input: DeleteTaskInput!
    $condition: ModelTaskConditionInput
  ) {{
    deleteTask(input: $input, condition: $condition) {{{TASK_FIELDS}    }}
  }}
"""
