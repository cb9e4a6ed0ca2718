"""User-facing text for the research update form."""

headings = {
    'create': 'Add update',
    'edit': 'Edit update',
}

buttons = {
    'publish': 'Publish',
    'draft': 'Save as draft',
    'deletion': {
        'text': 'Delete this update',
        'message': 'Are you sure you want to delete this update?',
        'confirm': 'Delete',
    },
}

# Field labels shown next to client-side validation errors
update = {
    'title': 'Title of this update',
    'description': 'Description of this update',
    'video_url': 'Video URL',
    'images': 'Images',
    'files': 'Files',
    'file_link': 'Link to files',
}
