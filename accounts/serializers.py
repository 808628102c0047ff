"""
Serializers for accounts app
"""
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from django.contrib.auth import get_user_model

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """User serializer for API responses"""
    fullName = serializers.CharField(source='full_name', read_only=True)
    organizationId = serializers.IntegerField(source='organization_id', read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'fullName', 'role', 'organizationId']
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """Login serializer"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            raise AuthenticationFailed('Invalid email or password.')

        if not user.check_password(password):
            raise AuthenticationFailed('Invalid email or password.')

        if not user.is_active:
            raise AuthenticationFailed('User account is disabled.')

        attrs['user'] = user
        return attrs
