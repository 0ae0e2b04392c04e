"""Cloud Drive API: personal file storage over S3, DynamoDB and Cognito."""
