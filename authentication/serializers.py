"""
Serializers for CleanCity Authentication.

Handles:
- Password login returning a JWT pair
- User profile serialization
"""

import logging

from django.contrib.auth import authenticate
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User

logger = logging.getLogger('cleancity.security')


class UserSerializer(serializers.ModelSerializer):

    class Meta:
        model = User
        fields = [
            'id', 'identifier', 'full_name', 'role',
            'is_active', 'last_login', 'created_at',
        ]
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """
    Serializer for identifier + password login.

    Staff (admins, drivers) and citizens use the same endpoint; the role is
    embedded in the token for clients.
    """

    identifier = serializers.CharField(
        max_length=255,
        help_text="Email or phone number"
    )
    password = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get('request'),
            username=attrs.get('identifier'),
            password=attrs.get('password'),
        )

        if not user:
            logger.warning(f"Login failed for identifier={attrs.get('identifier')!r}")
            raise serializers.ValidationError({
                'detail': 'Invalid credentials.'
            })

        if not user.is_active:
            raise serializers.ValidationError({
                'detail': 'Your account is not active.'
            })

        attrs['user'] = user
        return attrs

    def create(self, validated_data):
        user = validated_data['user']

        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role

        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'role': user.role,
            'user': UserSerializer(user).data,
        }
